# =============================================================================
# tests/ - Test Suite
# =============================================================================
# Run tests with: pytest
# =============================================================================
