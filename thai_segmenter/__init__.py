"""Thai subtitle word segmentation with per-video collocation mining.

WHY: Dictionary-driven Thai tokenizers split compounds and names that a
single video repeats many times. Mining that video's own collocations
and re-segmenting with a cost-based DP gives spans that read naturally.

HOW: ThaiSegmenterEngine (engine.py) is the public entry point. The core
algorithms live in core/, caching and background work in cache/, the
optional AI hint integration in hints/, and the outer surfaces in
formatters/, cli.py and server/.
"""

from thai_segmenter.engine import ThaiSegmenterEngine

__version__ = "0.1.0"

__all__ = ["ThaiSegmenterEngine", "__version__"]
