"""UI layer -- Rich terminal output and file formatters."""

from .dashboard import (
    console,
    create_histogram,
    print_campaign_summary,
    print_header,
    print_history,
    print_server_result,
    print_stats,
)
from .output import (
    append_csv,
    create_result_json,
    format_csv_header,
    format_csv_row,
    format_text_result,
    save_json,
)

__all__ = [
    "append_csv",
    "console",
    "create_histogram",
    "create_result_json",
    "format_csv_header",
    "format_csv_row",
    "format_text_result",
    "print_campaign_summary",
    "print_header",
    "print_history",
    "print_server_result",
    "print_stats",
    "save_json",
]
