"""Angular detection engine.

Classifies installed plugins, resolves datasource references and walks the
panel tree of every dashboard on a Grafana instance.
"""
