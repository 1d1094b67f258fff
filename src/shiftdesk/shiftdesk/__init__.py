"""shiftdesk package.

Agent shift/attendance core organized by feature modules (agents, shifts,
sessions, breaks, activity, attendance) with SOLID service/repository layers
and a thin Flask bootstrap.
"""
