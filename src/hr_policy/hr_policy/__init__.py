"""HR policy engine package.

Feature modules (policy, attendance, leaves, payroll, verification,
marketplace, ...) keep their decision rules pure and push persistence behind
repository interfaces, with a thin Flask controller layer on top.
"""
