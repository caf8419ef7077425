"""
App list serializers.

Renders an ordered app list as JSON, CSV or a plain-text report. Every
serializer is a 1:1 projection of its input: no sorting, truncation or
deduplication happens here, and an empty list still yields a complete
document.
"""

import csv
import io
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from ..models import AppInfo, ExportFormat

TEMPLATE_DIR = Path(__file__).parent / "templates"

UNKNOWN_LABEL = "未知"
DATE_FORMAT = "%Y-%m-%d %H:%M"

CSV_HEADER = ["应用名称", "包名", "版本号", "版本代码", "系统应用", "安装时间", "更新时间"]

SYSTEM_APP_LABEL = "系统应用"
USER_APP_LABEL = "用户应用"

_env: Optional[Environment] = None


def _template_env() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _env


def format_timestamp(millis: int) -> str:
    """Render epoch milliseconds as local 'YYYY-MM-DD HH:MM', or the unknown sentinel for 0."""
    if millis <= 0:
        return UNKNOWN_LABEL
    return datetime.fromtimestamp(millis / 1000).strftime(DATE_FORMAT)


def app_to_dict(app: AppInfo) -> Dict[str, Any]:
    """JSON object for one app, using the export field names."""
    return {
        "appName": app.name,
        "packageName": app.identifier,
        "versionName": app.version_label,
        "versionCode": app.version_ordinal,
        "isSystemApp": app.is_system,
        "installTime": app.installed_at,
        "updateTime": app.updated_at,
    }


def to_json(apps: Sequence[AppInfo], now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    document = {
        "exportTime": now.isoformat(timespec="seconds"),
        "totalApps": len(apps),
        "apps": [app_to_dict(app) for app in apps],
    }
    return json.dumps(document, ensure_ascii=False, indent=2)


def to_csv(apps: Sequence[AppInfo], now: Optional[datetime] = None) -> str:
    """CSV with a fixed header; fields containing separators or quotes are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(CSV_HEADER)
    for app in apps:
        writer.writerow([
            app.name,
            app.identifier,
            app.version_label,
            app.version_ordinal,
            "true" if app.is_system else "false",
            format_timestamp(app.installed_at),
            format_timestamp(app.updated_at),
        ])
    return buffer.getvalue()


def to_txt(apps: Sequence[AppInfo], now: Optional[datetime] = None) -> str:
    """Human-readable numbered report."""
    now = now or datetime.now()
    template = _template_env().get_template("app_list.txt.j2")
    return template.render(
        generated_at=now.strftime("%Y-%m-%d %H:%M:%S"),
        total=len(apps),
        apps=[
            {
                "name": app.name,
                "identifier": app.identifier,
                "version_label": app.version_label,
                "version_ordinal": app.version_ordinal,
                "kind": SYSTEM_APP_LABEL if app.is_system else USER_APP_LABEL,
                "installed": format_timestamp(app.installed_at),
                "updated": format_timestamp(app.updated_at),
            }
            for app in apps
        ],
    )


SERIALIZERS: Dict[ExportFormat, Callable[..., str]] = {
    ExportFormat.JSON: to_json,
    ExportFormat.CSV: to_csv,
    ExportFormat.TXT: to_txt,
}


def serialize(
    apps: Sequence[AppInfo],
    fmt: ExportFormat,
    now: Optional[datetime] = None,
) -> str:
    """Render apps in the given format. `now` stamps the JSON/TXT headers."""
    return SERIALIZERS[fmt](apps, now=now)
