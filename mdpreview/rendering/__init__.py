from .markdown_pipeline import (
    MarkdownDocument,
    MarkdownItPipeline,
    build_markdown_engine,
)

__all__ = ["MarkdownDocument", "MarkdownItPipeline", "build_markdown_engine"]
