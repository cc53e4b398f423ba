"""
VortexBoard service layer.

- access: board permission predicates (owner / write / read / none)
- analytics: dashboard, board and productivity reports
- activity: best-effort activity log recording
- notifications: in-app notifications and emails for domain events
- email: message composition and pluggable transports
- reminders: due-soon and overdue reminder run
- storage: attachment files on disk
"""
