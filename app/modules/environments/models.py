# Supabase table: environments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in store.py

"""
Expected Supabase table structure:
- name: text (primary key) - URL-safe, immutable identifier
- type: text (not null)
- enabled: boolean (not null, default: false)
- sort_order: integer (not null, default: 1)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Expected Postgres function (called through supabase.rpc), applies a batch of
sort orders in a single transaction and fails without writing when any name
is unknown:

    create or replace function update_environment_sort_order(sort_orders jsonb)
    returns void language plpgsql as $$
    declare
        missing text[];
    begin
        select array_agg(k) into missing
        from jsonb_object_keys(sort_orders) k
        where not exists (select 1 from environments e where e.name = k);
        if missing is not null then
            raise exception 'Environments not found: %', missing
                using errcode = 'P0002';
        end if;
        update environments e
        set sort_order = (sort_orders ->> e.name)::int, updated_at = now()
        where sort_orders ? e.name;
    end;
    $$;
"""
