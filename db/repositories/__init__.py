"""Repository layer for the CRM dashboard backend.

Provides CRUD, dedup, and query methods for core CRM entities:
- profiles: get, list_all, find_by_email_or_phone, create, update_fields,
            delete_profile, managed_sales_ids, names_by_id, set_fcm_token,
            clear_fcm_token, set_avatar_url, count_stats_for_user
- contacts: get, list_scoped, list_for_pipeline, find_duplicate, create,
            update_fields, set_life_stage, touch_last_updated_by,
            count_history, delete_with_history, existing_emails_phones,
            bulk_insert, list_for_export, dashboard_rows
- history: list_for_contact, add, get, delete_entry, latest_action_times
- appointments: get, list_between, owner_candidates, create, update_fields,
                delete_appointment, in_window, created_recently_in_window,
                dashboard_rows
- activity: record, list_entries
- notifications: list_for_user, stats, mark_read, mark_all_read,
                 already_sent, record_once, settings_for_user, upsert_setting
- app_config: list_options, create_option, update_option, delete_option
"""
