"""WriteOff package.

Imports bank transactions through Plaid, classifies each one as tax
deductible with an OpenAI chat completion and serves the results to the
dashboard through a FastAPI app. See ``writeoff.web.app`` and
``writeoff.cli.main`` for entry points.
"""

__version__ = "0.1.0"
