from __future__ import annotations

import sys

from excel_mcp.mcp.server import main

if __name__ == "__main__":
    sys.exit(main())
