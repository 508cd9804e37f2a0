#!/usr/bin/env python3
"""
mllm CLI - Send one prompt to many io.net models and compare the answers

Commands:
  mllm models                    List available models (cached catalog)
  mllm run <prompt>              Query a set of models (or the catalog)
  mllm random <prompt>           Query N models picked across families

Requires IONET_API_KEY in the environment or a .env file.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from cli import main


if __name__ == '__main__':
    main()
