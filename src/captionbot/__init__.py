"""Caption bot: collect, moderate and draw humorous image captions on Discord."""

__version__ = "0.1.0"
