from mdpreview.gui.widgets.preview_widget import MarkdownPreviewWidget

__all__ = ["MarkdownPreviewWidget"]
