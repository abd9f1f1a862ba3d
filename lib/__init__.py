# =============================================================================
# lib/ - Standalone Client Modules
# =============================================================================
# - supabase_client.py: Typed Supabase wrapper (auth, users, campaigns)
# - paystack.py: Paystack client returning normalized results
# - mailer.py: Email provider client used by the email worker
# - email_templates.py: Transactional email templates
# =============================================================================
