"""HR Payroll package.

Organized by feature modules (periods, employees, attendance, overtime,
reimbursements, payroll, payslips) with a thin Flask JSON controller layer on
top of service/repository layers. All writes that must be atomic go through
``database.unit_of_work.UnitOfWork.run``.
"""
