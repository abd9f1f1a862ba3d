# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# - models/: Pydantic schemas for campaigns and email jobs
# - services/: Campaign and user operations
# =============================================================================
