from __future__ import annotations

import os
import sys

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

# Modules live at the repository root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
