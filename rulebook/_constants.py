"""Common literal values used across rulebook.

These constants keep reference schemes, artifact filenames, and the marker
sentinel centralized so the resolver, linker, exporter, and tests can import
the same values without drifting. Intended for internal use within the
rulebook package.

Examples
--------
>>> from rulebook import _constants
>>> _constants.MARKER_TEMPLATE.format(text="Pack", entry_id="pack")
'$Pack:pack$'
>>> _constants.ENTRY_FILE_TEMPLATE.format(entry_id="pack")
'pack.json'
"""

MARKER_SENTINEL = "$"
MARKER_TEMPLATE = MARKER_SENTINEL + "{text}:{entry_id}" + MARKER_SENTINEL

DEFAULT_STRUCTURED_SCHEMES: dict[str, str] = {
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
}
DEFAULT_TEXT_SCHEMES: tuple[str, ...] = ("markdown", "md", "text", "txt")

INDEX_FILENAME = "index.json"
ENTRY_FILE_TEMPLATE = "{entry_id}.json"
DOCUMENTS_DIR = "documents"
SECTIONS_DIR = "sections"
GLOSSARY_DIR = "glossary"
GLOSSARY_ENTRIES_DIR = "entries"
APPENDICES_DIR = "appendices"

DEFAULT_GLOSSARY_ID = "glossary"
DEFAULT_GLOSSARY_TITLE = "Glossary"
