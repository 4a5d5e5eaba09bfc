"""Tag content management for the Shumilog hobby log: hashtags, tag graph, revisions, search."""

__version__ = "1.0.0"
