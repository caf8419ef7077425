"""
AppList: installed application inventory and export

Enumerates installed applications from a registry, filters them by a text
query, and exports the result as JSON, CSV or a plain-text report.

Main components:
- catalog: registry backends, catalog loading and query filtering
- export: format serializers and the artifact export pipeline
- session: async coordinator holding the observable session state
"""

__version__ = "0.1.0"
