"""Attendance Hub package.

Feature modules (users, attendance, requests, settings, ...) each expose a
service/repository layer plus a thin Flask controller.
"""
