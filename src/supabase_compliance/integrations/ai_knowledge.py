"""
Supabase security knowledge base and prompt builder for the AI assistant.

The prompt only carries the knowledge sections relevant to the query, picked
by keyword, plus the current MFA/RLS/PITR statuses when a report is given.
"""

import json
from typing import Any, Dict, List, Optional

SUPABASE_KNOWLEDGE: Dict[str, Dict[str, Any]] = {
    "rls": {
        "setup": 'alter table "table_name" enable row level security;',
        "policies": {
            "select": 'create policy "policy_name" on table_name for select using ( auth.uid() = user_id );',
            "insert": 'create policy "policy_name" on table_name for insert with check ( auth.uid() = user_id );',
            "update": 'create policy "policy_name" on table_name for update using ( auth.uid() = user_id );',
            "delete": 'create policy "policy_name" on table_name for delete using ( auth.uid() = user_id );',
        },
        "best_practices": [
            "Enable RLS on all public tables",
            "Use auth.uid() for user-specific policies",
            "Add indexes on policy columns",
            "Minimize joins in policies",
            "Always specify roles (to authenticated/anon)",
        ],
    },
    "mfa": {
        "setup": {
            "enrollment": "supabase.auth.mfa.enroll()",
            "challenge": "supabase.auth.mfa.challenge()",
            "verify": "supabase.auth.mfa.verify()",
        },
        "policies": {
            "require_mfa": (
                'create policy "require_mfa" on table_name as restrictive for all '
                "using ((auth.jwt()->>'aal')::text = 'aal2');"
            ),
        },
        "best_practices": [
            "Implement both enrollment and verification flows",
            "Use aal2 level for sensitive operations",
            "Add fallback mechanisms for recovery",
            "Store MFA state securely",
        ],
    },
    "pitr": {
        "requirements": [
            "Pro plan or higher",
            "Small compute add-on minimum",
            "Sufficient storage for WAL",
        ],
        "features": [
            "Point-in-time recovery up to 7 days",
            "WAL archiving every 2 minutes",
            "Daily physical backups",
        ],
        "best_practices": [
            "Monitor WAL storage usage",
            "Regular recovery testing",
            "Document recovery procedures",
            "Set appropriate retention period",
        ],
    },
}

SECTION_KEYWORDS: Dict[str, List[str]] = {
    "rls": ["rls", "row", "security", "policy", "policies"],
    "mfa": ["mfa", "2fa", "factor", "authentication"],
    "pitr": ["pitr", "backup", "recovery", "restore"],
}


def get_relevant_sections(query: str) -> List[str]:
    """
    Pick the knowledge sections a query is about.

    Returns every section when no keyword matches.
    """
    lowered = query.lower()
    sections = [
        section
        for section, keywords in SECTION_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]
    return sections or list(SECTION_KEYWORDS)


def _status_of(context: Dict[str, Any], check: str) -> str:
    section = context.get(check)
    if isinstance(section, dict) and section.get("status"):
        return str(section["status"])
    return "Unknown"


def build_prompt(query: str, context: Optional[Dict[str, Any]] = None) -> str:
    """
    Build the assistant prompt for a query.

    Args:
        query: Free-text question from the user
        context: Current compliance report (or any dict with ``mfa``, ``rls``
            and ``pitr`` sections carrying a ``status``)

    Returns:
        Prompt text
    """
    knowledge = {
        section: SUPABASE_KNOWLEDGE[section] for section in get_relevant_sections(query)
    }

    status_block = ""
    if context:
        status_block = (
            "CURRENT STATUS:\n"
            f"- MFA: {_status_of(context, 'mfa')}\n"
            f"- RLS: {_status_of(context, 'rls')}\n"
            f"- PITR: {_status_of(context, 'pitr')}\n"
        )

    return f"""You are a Supabase security expert. Use this knowledge to provide brief, actionable answers:

KNOWLEDGE BASE:
{json.dumps(knowledge, indent=2)}

{status_block}
QUERY: {query}

Provide a concise response with:
1. Numbered action steps (max 3)
2. Relevant code example
3. One-line security note

Format as:
## Steps
1. [First step]
2. [Second step]
3. [Third step]

## Example
```sql
[Code example]
```

## Security Note
[Brief security implication]"""


__all__ = [
    "SUPABASE_KNOWLEDGE",
    "SECTION_KEYWORDS",
    "get_relevant_sections",
    "build_prompt",
]
