"""Log group subscription management.

This package keeps CloudWatch Logs log groups subscribed to a single
destination:
- Tag and prefix based eligibility selection
- Idempotent subscription with on-demand invoke permission bootstrap
- Configuration, logging and AWS client wiring shared by the Lambda handlers
"""

__version__ = "0.1.0"
