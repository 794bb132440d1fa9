"""
Loan Decision Engine

Automated and manual credit decisioning for microfinance loan applications:
rule-based assessment, multi-level approvals, overrides and an auditable
decision history.
"""

__version__ = "0.1.0"
