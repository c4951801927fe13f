"""Add single-default and task-assignment triggers

Revision ID: 20261018_0004
Revises: 20261018_0003
Create Date: 2026-10-18

- cover_page_templates: setting is_default clears it on every other
  template of the same template_type, in the same transaction.
- tasks: a change of assigned_to to a new non-null user writes exactly one
  task_assigned notification for that user.

Both functions are SECURITY DEFINER: the acting user normally cannot write
the rows they touch.
"""

from alembic import op


revision = "20261018_0004"
down_revision = "20261018_0003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION ensure_single_default_template()
        RETURNS trigger
        LANGUAGE plpgsql
        SECURITY DEFINER
        SET search_path = public
        AS $$
        BEGIN
            IF NEW.is_default THEN
                PERFORM 1 FROM cover_page_templates
                WHERE template_type = NEW.template_type
                AND id <> NEW.id
                AND is_default
                FOR UPDATE;

                UPDATE cover_page_templates
                SET is_default = false, updated_at = now()
                WHERE template_type = NEW.template_type
                AND id <> NEW.id
                AND is_default;
            END IF;
            RETURN NEW;
        END;
        $$
    """)
    op.execute("""
        CREATE TRIGGER cover_page_templates_single_default
        AFTER INSERT OR UPDATE OF is_default, template_type ON cover_page_templates
        FOR EACH ROW
        WHEN (NEW.is_default)
        EXECUTE FUNCTION ensure_single_default_template()
    """)

    op.execute("""
        CREATE OR REPLACE FUNCTION notify_task_assignment()
        RETURNS trigger
        LANGUAGE plpgsql
        SECURITY DEFINER
        SET search_path = public
        AS $$
        BEGIN
            IF NEW.assigned_to IS NOT NULL
               AND (TG_OP = 'INSERT' OR NEW.assigned_to IS DISTINCT FROM OLD.assigned_to) THEN
                INSERT INTO notifications (user_id, type, title, data, created_at)
                VALUES (
                    NEW.assigned_to,
                    'task_assigned',
                    'You were assigned: ' || NEW.title,
                    json_build_object('task_id', NEW.id, 'project_id', NEW.project_id),
                    now()
                );
            END IF;
            RETURN NEW;
        END;
        $$
    """)
    op.execute("""
        CREATE TRIGGER tasks_notify_assignment
        AFTER INSERT OR UPDATE OF assigned_to ON tasks
        FOR EACH ROW
        EXECUTE FUNCTION notify_task_assignment()
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS tasks_notify_assignment ON tasks")
    op.execute("DROP FUNCTION IF EXISTS notify_task_assignment()")
    op.execute("DROP TRIGGER IF EXISTS cover_page_templates_single_default ON cover_page_templates")
    op.execute("DROP FUNCTION IF EXISTS ensure_single_default_template()")
