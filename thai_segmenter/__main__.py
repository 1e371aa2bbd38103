"""Package entry point for ``python -m thai_segmenter``.

RULES:
- ``--serve`` starts the HTTP API (uvicorn)
- Without ``--serve``, falls through to the CLI
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from thai_segmenter.server.app import run_api
        run_api()
    else:
        from thai_segmenter.cli import main
        main()
