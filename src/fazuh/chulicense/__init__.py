"""ChuLicense: Chula License Portal auto-borrower.

This package logs into the Chulalongkorn University license portal and
borrows software licenses (Zoom, Adobe Creative Cloud, Foxit) on a schedule,
so the entitlements never lapse.
"""
