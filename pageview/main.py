import argparse
import os
import sys

from PyQt5.QtWidgets import QApplication

from pageview.config import ViewerOptions
from pageview.core.document import PdfDocumentSource, ThreadedResourceLoader
from pageview.ui import MainWindow
from pageview.utils import configure_logging


def parse_args(argv):
    parser = argparse.ArgumentParser(description="Paginated document viewer")
    parser.add_argument("pdf", nargs="?", help="local PDF file to open")
    parser.add_argument("--base-url", help="document API base URL")
    parser.add_argument("--document", help="document id on the API")
    parser.add_argument("--config", help="JSON file with viewer options")
    parser.add_argument("--page", type=int, help="initial page number")
    return parser.parse_args(argv)


def main():
    """
    Main function to run the viewer application.
    Opens a local PDF when a path is given, otherwise a document from the API.
    """
    args = parse_args(sys.argv[1:])
    if args.pdf and not os.path.exists(args.pdf):
        sys.exit(f"File not found: {args.pdf}")
    configure_logging()
    app = QApplication(sys.argv)

    options = ViewerOptions.from_json_file(args.config) if args.config else ViewerOptions()
    if args.base_url:
        options.base_url = args.base_url
    if args.document:
        options.document_id = args.document
    if args.page:
        options.page_number = args.page

    loader = None
    if args.pdf:
        source = PdfDocumentSource()
        options.document_id = source.register(os.path.abspath(args.pdf))
        loader = ThreadedResourceLoader(source)

    window = MainWindow(options, loader=loader)
    window.showMaximized()
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
