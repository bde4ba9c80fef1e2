"""Club participation package.

Organized by feature modules (activities, signups, attendance, notifications)
with a thin Flask JSON controller layer over service/repository layers.
"""
