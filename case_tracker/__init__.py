"""Fraud Case Tracker Service.

This service provides APIs for fraud teams to:
- Open fraud cases against a transaction ID
- Assign cases to investigators and analysts
- Update, escalate and close cases under role-based permissions
- Review the escalation history of a case
- Manage users and check what their role allows
"""

__version__ = "0.1.0"
