"""
API Routers - Organized endpoint handlers for the Halaqah API.

Each router handles a specific domain:
- auth: Static operator login
- lookups: Reference values for forms
- people: Student and mentor CRUD
- circles: Circle CRUD, membership and bulk roster endpoints
- attendance: Session roster, batch recording, listings and report
- progress: Monthly progress records
- dashboard: Summary statistics
"""
