"""Playlist and EPG importers"""

from .m3u_importer import M3UImporter, M3UImportResult
from .m3u_parser import M3UEntry, M3UParser, detect_input_type, emit_m3u, format_extinf, parse_m3u
from .url_rewrites import DEFAULT_RULES, RewriteRule, convert_a1_to_hls_ts, rewrite_url
from .xmltv_importer import (
    XMLTVChannel,
    XMLTVDocument,
    XMLTVImporter,
    XMLTVImportResult,
    XMLTVProgramme,
    decompress_if_gzipped,
    parse_xmltv,
    parse_xmltv_date,
)

__all__ = [
    "DEFAULT_RULES",
    "M3UEntry",
    "M3UImporter",
    "M3UImportResult",
    "M3UParser",
    "RewriteRule",
    "XMLTVChannel",
    "XMLTVDocument",
    "XMLTVImporter",
    "XMLTVImportResult",
    "XMLTVProgramme",
    "convert_a1_to_hls_ts",
    "decompress_if_gzipped",
    "detect_input_type",
    "emit_m3u",
    "format_extinf",
    "parse_m3u",
    "parse_xmltv",
    "parse_xmltv_date",
    "rewrite_url",
]
