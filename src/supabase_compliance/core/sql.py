"""
SQL helper functions the checker relies on inside the target database.

``get_rls_status`` and ``enable_rls_for_table`` are called over PostgREST RPC
by the RLS check and the batch RLS fix, so they must be installed in the
project (``supabase-compliance setup-sql`` prints them).
"""

DEFAULT_POLICY_NAME = "Enable access for authenticated users"

GET_RLS_STATUS = """
CREATE OR REPLACE FUNCTION public.get_rls_status()
RETURNS TABLE (
  table_name text,
  rls_enabled boolean,
  policies jsonb
)
LANGUAGE plpgsql
SECURITY DEFINER
SET search_path = public
AS $$
BEGIN
  RETURN QUERY
  SELECT
    t.tablename::text,
    t.rowsecurity::boolean,
    COALESCE(
      jsonb_agg(
        jsonb_build_object(
          'name', p.policyname,
          'command', p.cmd,
          'roles', p.roles
        )
      ) FILTER (WHERE p.policyname IS NOT NULL),
      '[]'::jsonb
    )
  FROM pg_tables t
  LEFT JOIN pg_policies p
    ON p.schemaname = t.schemaname AND p.tablename = t.tablename
  WHERE t.schemaname = 'public'
  GROUP BY t.tablename, t.rowsecurity
  ORDER BY t.tablename;
END;
$$;
"""

ENABLE_RLS_FOR_TABLE = f"""
CREATE OR REPLACE FUNCTION public.enable_rls_for_table(target_table text)
RETURNS void
LANGUAGE plpgsql
SECURITY DEFINER
SET search_path = public
AS $$
BEGIN
  IF NOT EXISTS (
    SELECT FROM pg_tables
    WHERE schemaname = 'public'
    AND tablename = target_table
  ) THEN
    RAISE EXCEPTION 'Table % does not exist in public schema', target_table;
  END IF;

  EXECUTE format('ALTER TABLE public.%I ENABLE ROW LEVEL SECURITY', target_table);

  IF NOT EXISTS (
    SELECT FROM pg_policies
    WHERE schemaname = 'public'
    AND tablename = target_table
    AND policyname = '{DEFAULT_POLICY_NAME}'
  ) THEN
    EXECUTE format(
      'CREATE POLICY "{DEFAULT_POLICY_NAME}" ON public.%I '
      'FOR ALL TO authenticated USING (true) WITH CHECK (true)',
      target_table
    );
  END IF;
END;
$$;
"""

ENABLE_RLS_FOR_ALL_TABLES = """
DO $$
DECLARE
  table_record RECORD;
BEGIN
  FOR table_record IN
    SELECT tablename FROM pg_tables
    WHERE schemaname = 'public' AND rowsecurity = false
  LOOP
    PERFORM public.enable_rls_for_table(table_record.tablename);
  END LOOP;
END;
$$;
"""

USERS_WITHOUT_MFA = """
SELECT u.id::text AS id, COALESCE(u.email, 'no-email') AS email
FROM auth.users u
WHERE COALESCE((u.raw_app_meta_data ->> 'mfa_enabled')::boolean, false) = false
AND NOT EXISTS (
  SELECT 1 FROM auth.mfa_factors f
  WHERE f.user_id = u.id AND f.status = 'verified'
)
ORDER BY u.email;
"""

SETUP_SCRIPT = GET_RLS_STATUS + ENABLE_RLS_FOR_TABLE


__all__ = [
    "DEFAULT_POLICY_NAME",
    "GET_RLS_STATUS",
    "ENABLE_RLS_FOR_TABLE",
    "ENABLE_RLS_FOR_ALL_TABLES",
    "USERS_WITHOUT_MFA",
    "SETUP_SCRIPT",
]
