"""Plugin Foundry engine.

Plugin lifecycle administration and the git-to-deployment pipeline,
independent of the web layer in ``foundry_api``.
"""

__version__ = "0.1.0"
