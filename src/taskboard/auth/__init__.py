"""Authentication and caller identity.

Learn: Two ways to be somebody:
1. Registered users → email/password → JWT bearer token
2. Anonymous callers → random identifier in the anonymousIdentifier cookie

Both resolve to an Identity that the task service scopes queries by.
"""
