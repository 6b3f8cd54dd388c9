"""refit_cli: generate Refit C# clients from OpenAPI specifications."""

__version__ = "0.4.0"
