"""Wire schemas for the Grafana and grafana.com APIs."""
