"""Course registration services: rules, reports, storage and routes."""
