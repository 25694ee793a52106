"""seq2gif: turn numbered frame sequences into palette-optimized looping GIFs."""

__version__ = "0.1.0"
