import sys
from pathlib import Path
from typing import Optional

from qtpy import QtCore, QtGui, QtWidgets

from mdpreview.gui.application import create_qapp
from mdpreview.gui.cli import parse_cli
from mdpreview.gui.widgets.preview_widget import MarkdownPreviewWidget
from mdpreview.rendering import MarkdownDocument
from mdpreview.utils.logger import __appname__, logger
from mdpreview.version import get_version


class PreviewWindow(QtWidgets.QMainWindow):
    """Plain-text editor on the left, live preview on the right."""

    def __init__(self, config: dict, filename: Optional[str] = None) -> None:
        super().__init__()
        self._document = MarkdownDocument()
        self._path: Optional[Path] = None

        self.editor = QtWidgets.QPlainTextEdit(self)
        self.editor.setLineWrapMode(QtWidgets.QPlainTextEdit.WidgetWidth)
        font = QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.FixedFont)
        self.editor.setFont(font)

        self.preview = MarkdownPreviewWidget(self._document, config=config, parent=self)
        self.preview.file_open_requested.connect(self.open_file)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal, self)
        splitter.addWidget(self.editor)
        splitter.addWidget(self.preview)
        splitter.setSizes([500, 500])
        self.setCentralWidget(splitter)

        self.editor.textChanged.connect(self._on_text_changed)
        self.editor.cursorPositionChanged.connect(self._on_cursor_moved)
        self._build_menu(config)
        self.resize(1200, 800)

        if filename:
            self.open_file(filename)
        else:
            self._update_title()
            self.preview.on_document_changed()

    def _build_menu(self, config: dict) -> None:
        file_menu = self.menuBar().addMenu("&File")
        open_action = file_menu.addAction("&Open...")
        open_action.setShortcut(QtGui.QKeySequence.Open)
        open_action.triggered.connect(self._choose_file)
        save_action = file_menu.addAction("&Save")
        save_action.setShortcut(QtGui.QKeySequence.Save)
        save_action.triggered.connect(self.save_file)

        view_menu = self.menuBar().addMenu("&View")
        sync_action = view_menu.addAction("Scroll &Sync")
        sync_action.setCheckable(True)
        sync_action.setChecked(bool(config.get("scroll_sync", True)))
        sync_action.toggled.connect(self.preview.set_scroll_sync_enabled)
        reload_action = view_menu.addAction("&Reload Preview")
        reload_action.setShortcut(QtGui.QKeySequence.Refresh)
        reload_action.triggered.connect(self.preview.reload)

    def _choose_file(self) -> None:
        start = str(self._path.parent) if self._path else str(Path.home())
        filename, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Open Markdown", start, "Markdown (*.md *.markdown);;All files (*)"
        )
        if filename:
            self.open_file(filename)

    def open_file(self, filename: str) -> None:
        path = Path(filename).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to open %s: %s", path, exc)
            QtWidgets.QMessageBox.warning(self, "Open", f"Cannot open {path}:\n{exc}")
            return
        self._path = path.resolve()
        document = MarkdownDocument(text, source_path=str(self._path))
        self._document = document
        self.editor.blockSignals(True)
        self.editor.setPlainText(text)
        self.editor.blockSignals(False)
        self.preview.set_document(document)
        self._update_title()
        logger.info("Opened %s", self._path)

    def save_file(self) -> None:
        if self._path is None:
            filename, _ = QtWidgets.QFileDialog.getSaveFileName(
                self, "Save Markdown", str(Path.home()), "Markdown (*.md)"
            )
            if not filename:
                return
            self._path = Path(filename).resolve()
            self._document.source_path = str(self._path)
            self.preview.set_document(self._document)
        try:
            self._path.write_text(self.editor.toPlainText(), encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to save %s: %s", self._path, exc)
            QtWidgets.QMessageBox.warning(self, "Save", f"Cannot save {self._path}:\n{exc}")
            return
        self._update_title()

    def _on_text_changed(self) -> None:
        self._document.set_text(self.editor.toPlainText())
        self.preview.on_document_changed()

    def _on_cursor_moved(self) -> None:
        self.preview.on_cursor_line_changed(self.editor.textCursor().blockNumber())

    def _update_title(self) -> None:
        name = self._path.name if self._path else "Untitled"
        self.setWindowTitle(f"{name} - {__appname__}")

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self.preview.dispose()
        super().closeEvent(event)


def main(argv=None):
    config, namespace, version_requested = parse_cli(argv)
    if version_requested:
        print(get_version())
        return 0

    qt_args = sys.argv if argv is None else [sys.argv[0], *argv]
    app = create_qapp(qt_args)
    app.setApplicationName(__appname__)

    win = PreviewWindow(config, namespace.filename)
    win.show()
    win.raise_()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
