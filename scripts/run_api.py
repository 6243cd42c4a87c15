import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import uvicorn


def main() -> None:
    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", os.environ.get("PORT", "5000")))
    uvicorn.run("social_platform.api.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
