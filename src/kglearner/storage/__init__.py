"""Graph file import/export."""

from kglearner.storage.files import (
    ImportedGraph,
    build_export,
    export_filename,
    export_notebook_text,
    load_graph_file,
    parse_import,
    parse_import_text,
    save_graph_file,
)

__all__ = [
    "ImportedGraph",
    "parse_import",
    "parse_import_text",
    "load_graph_file",
    "build_export",
    "save_graph_file",
    "export_filename",
    "export_notebook_text",
]
