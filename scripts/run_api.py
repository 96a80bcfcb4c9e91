import os
import sys
from pathlib import Path

import uvicorn

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / 'src'))

if __name__ == "__main__":
    os.environ.setdefault("TIER_PRICING_DATA_DIR", str(project_root / "data"))
    uvicorn.run("tier_pricing.api.main:app", host="0.0.0.0", port=8000)
