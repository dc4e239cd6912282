"""
UTILITIES PACKAGE
=================

Helpers used by the services and the API layer (no business logic):

  language - detect_language(text): Unicode-block sniffing for Indian scripts.
  auth     - verify_token(), user_id_from_authorization(): user id from an optional Bearer JWT.
"""
