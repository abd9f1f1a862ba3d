# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the HTTP side of CampaignHub:
# - main.py: App factory, exception handlers, router mounting
# - pipeline.py + middleware/: The ordered request pipeline
# - supervisor.py + server.py: Process entry point and crash handling
# - config.py: Environment variable loading and settings
#
# The app layer is thin - it handles HTTP concerns and delegates
# business logic to the core/ package.
# =============================================================================
