"""ProductBoard to Azure DevOps story-link automation.

This package drives a headless browser through ProductBoard's UI to link a
PB story to an existing ADO work item, and exposes the workflow over HTTP
and a small CLI.
"""
