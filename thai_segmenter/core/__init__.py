"""Core segmentation modules: tokenizer, boundaries, mining, cost, DP.

WHY: The core package holds the pure, synchronous algorithms of the
engine. Nothing here touches the cache, the network, or the event loop,
so every function is deterministic and directly testable.

HOW: tokenizer.py normalizes and tokenizes, boundary.py classifies hard
boundaries, collocations.py mines PMI merge candidates, cost.py scores
spans, segmenter.py runs the DP. ir.py holds the shared dataclasses.

RULES:
- The algorithms do no I/O; dictionary.py and subtitles.py only read files
- The Thai word-boundary capability and the dictionary are injected
"""
