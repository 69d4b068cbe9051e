# Supabase tables: projects, project_environments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in store.py

"""
Expected Supabase table structure:

projects:
- id: text (primary key) - URL-safe project identifier, e.g. "default"
- name: text (not null)
- description: text (nullable)
- created_at: timestamp (default: now())

project_environments:
- project_id: text (foreign key to projects.id, not null, on delete cascade)
- environment_name: text (foreign key to environments.name, not null, on delete cascade)
- enabled_for_project: boolean (not null, default: true)
- created_at: timestamp (default: now())
- primary key on (project_id, environment_name)

A link only counts as active while environments.enabled is also true; the
global toggle never rewrites rows in this table.
"""
