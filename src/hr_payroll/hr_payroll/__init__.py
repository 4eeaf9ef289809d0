"""HR Payroll package.

Organized by feature modules (attendance, leaves, salary_rules, payroll, ...)
with a thin Flask controller layer over service/repository layers.
"""
