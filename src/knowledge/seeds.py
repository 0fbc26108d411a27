# src/knowledge/seeds.py — v1
"""Bundled seed knowledge, inserted as ready entries with source_kind=seed.

Seeding never overwrites: keys that already exist (in any status) are
left untouched.
"""

from __future__ import annotations

import logging
from typing import Any

from techknowledge.knowledge.models import ConceptHint, normalize_key
from techknowledge.knowledge.parser import validate_prerequisites
from techknowledge.store.base_entry_store import BaseEntryStore

logger = logging.getLogger(__name__)

SEED_KNOWLEDGE: list[dict[str, Any]] = [
    {
        "technology_name": "Next.js",
        "version": "15",
        "concepts": [
            {
                "concept_key": "app-router",
                "concept_name": "The App Router",
                "key_points": [
                    "Routing follows the file system under app/",
                    "page.tsx is a route endpoint; layout.tsx is a shared layout",
                    "loading.tsx, error.tsx and not-found.tsx are special file conventions",
                    "Folder names become URL paths (app/dashboard/page.tsx is /dashboard)",
                ],
                "common_quiz_topics": [
                    "page.tsx versus layout.tsx",
                    "Dynamic segments with [id]",
                    "What route groups (parenthesised folders) are for",
                ],
                "prerequisite_concepts": [],
                "tags": ["routing", "file-convention", "page", "layout"],
            },
            {
                "concept_key": "server-components",
                "concept_name": "Server versus client components",
                "key_points": [
                    "Every component is a server component by default",
                    "The 'use client' directive declares a client component",
                    "Server components can reach the database and keep API keys private",
                    "Client components are needed for state, effects and event handlers",
                    "Server-to-client data goes through serializable props",
                ],
                "common_quiz_topics": [
                    "When 'use client' is and is not needed",
                    "What a server component cannot do",
                    "Prop rules at the client/server boundary",
                ],
                "prerequisite_concepts": ["app-router"],
                "tags": ["server-component", "client-component", "use-client", "RSC"],
            },
            {
                "concept_key": "server-actions",
                "concept_name": "Handling forms with Server Actions",
                "key_points": [
                    "The 'use server' directive defines a server action",
                    "The client calls server functions directly, RPC style",
                    "A server action can be bound to a form's action attribute",
                    "After a mutation, revalidatePath or revalidateTag refreshes the cache",
                ],
                "common_quiz_topics": [
                    "'use server' versus 'use client'",
                    "Authenticating inside a Server Action",
                    "Choosing between a Server Action and an API route",
                ],
                "prerequisite_concepts": ["server-components"],
                "tags": ["server-action", "use-server", "form", "mutation"],
            },
            {
                "concept_key": "api-routes",
                "concept_name": "Building API routes",
                "key_points": [
                    "A route.ts file under app/api/ creates an endpoint",
                    "Export one function per HTTP method (GET, POST, PUT, DELETE)",
                    "Handlers work with NextRequest and NextResponse",
                    "API routes are the integration point for webhooks and external services",
                ],
                "common_quiz_topics": [
                    "HTTP methods a route.ts can export",
                    "Dynamic API routes with [id]/route.ts",
                    "How middleware relates to API routes",
                ],
                "prerequisite_concepts": ["app-router"],
                "tags": ["api", "route", "endpoint", "REST"],
            },
            {
                "concept_key": "middleware",
                "concept_name": "Controlling requests with middleware",
                "key_points": [
                    "middleware.ts at the project root intercepts every request",
                    "Used for auth checks, redirects and header rewriting",
                    "The matcher config limits which paths it runs on",
                    "It runs on the Edge Runtime, where some Node.js APIs are missing",
                ],
                "common_quiz_topics": [
                    "When middleware runs",
                    "What middleware can and cannot do",
                    "Writing matcher patterns",
                ],
                "prerequisite_concepts": ["app-router", "api-routes"],
                "tags": ["middleware", "auth", "redirect", "edge"],
            },
        ],
    },
    {
        "technology_name": "React",
        "version": "19",
        "concepts": [
            {
                "concept_key": "react-components",
                "concept_name": "Component basics",
                "key_points": [
                    "Components split the UI into independent, reusable pieces",
                    "Function components are the standard; class components are legacy",
                    "JSX describes UI with HTML-like syntax",
                    "Props pass data from parent to child",
                ],
                "common_quiz_topics": [
                    "Embedding JavaScript expressions in JSX",
                    "One-way data flow through props",
                ],
                "prerequisite_concepts": [],
                "tags": ["component", "jsx", "props", "composition"],
            },
            {
                "concept_key": "hooks-state",
                "concept_name": "Managing state with useState",
                "key_points": [
                    "useState adds mutable state to a component",
                    "Updating state re-renders the component",
                    "State updates are batched, not applied immediately",
                    "Object and array state must be updated immutably",
                ],
                "common_quiz_topics": [
                    "Why a state change is not visible right away",
                    "Functional updates (prev => prev + 1)",
                ],
                "prerequisite_concepts": ["react-components"],
                "tags": ["usestate", "state", "hook", "rerender"],
            },
            {
                "concept_key": "hooks-effect",
                "concept_name": "Side effects with useEffect",
                "key_points": [
                    "useEffect runs code that talks to the world outside the component",
                    "The dependency array controls when the effect runs",
                    "A returned cleanup function tears the effect down",
                ],
                "common_quiz_topics": [
                    "Empty dependency array versus no dependency array",
                    "Effect patterns that cause infinite loops",
                ],
                "prerequisite_concepts": ["hooks-state"],
                "tags": ["useeffect", "side-effect", "lifecycle", "cleanup"],
            },
            {
                "concept_key": "react-context",
                "concept_name": "Sharing state with Context",
                "key_points": [
                    "createContext and useContext avoid prop drilling",
                    "A Provider supplies a value to its subtree",
                    "Every consumer re-renders when the context value changes",
                ],
                "common_quiz_topics": [
                    "When to use Context instead of props",
                    "Context re-render cost and how to limit it",
                ],
                "prerequisite_concepts": ["hooks-state", "react-components"],
                "tags": ["context", "provider", "global-state", "usecontext"],
            },
        ],
    },
    {
        "technology_name": "TypeScript",
        "version": "5",
        "concepts": [
            {
                "concept_key": "type-basics",
                "concept_name": "Type basics",
                "key_points": [
                    "Types catch bugs before the code runs",
                    "type and interface define custom shapes",
                    "Type inference removes most explicit annotations",
                ],
                "common_quiz_topics": [
                    "type versus interface",
                    "Why any should be avoided",
                ],
                "prerequisite_concepts": [],
                "tags": ["type", "interface", "inference", "basic"],
            },
            {
                "concept_key": "generics",
                "concept_name": "Flexible types with generics",
                "key_points": [
                    "Generics pass types like parameters",
                    "Array<T>, Promise<T> and Record<K, V> are built-in generics",
                    "extends constrains what a type parameter accepts",
                ],
                "common_quiz_topics": [
                    "Why generics beat any",
                    "Writing a generic constraint",
                ],
                "prerequisite_concepts": ["type-basics"],
                "tags": ["generic", "type-parameter", "extends", "constraint"],
            },
            {
                "concept_key": "union-narrowing",
                "concept_name": "Union types and narrowing",
                "key_points": [
                    "A union type accepts several types",
                    "typeof, in and instanceof narrow a union",
                    "Discriminated unions make branching type-safe",
                ],
                "common_quiz_topics": [
                    "Narrowing with typeof",
                    "Optional versus nullable",
                ],
                "prerequisite_concepts": ["type-basics"],
                "tags": ["union", "narrowing", "type-guard", "optional"],
            },
            {
                "concept_key": "utility-types",
                "concept_name": "Using utility types",
                "key_points": [
                    "Partial<T> makes every property optional",
                    "Pick<T, K> and Omit<T, K> select or drop properties",
                    "ReturnType<T> extracts a function's return type",
                ],
                "common_quiz_topics": [
                    "Pick versus Omit",
                    "Applying utility types to API response types",
                ],
                "prerequisite_concepts": ["generics"],
                "tags": ["utility", "partial", "pick", "omit", "record"],
            },
        ],
    },
    {
        "technology_name": "Supabase",
        "version": "2",
        "concepts": [
            {
                "concept_key": "supabase-client",
                "concept_name": "Setting up the Supabase client",
                "key_points": [
                    "Server (createClient) and browser (createBrowserClient) clients are separate",
                    "The project URL and anon key initialize the client",
                    "The service role key is server-only and has admin rights",
                    "Middleware refreshes the session",
                ],
                "common_quiz_topics": [
                    "Server client versus browser client",
                    "Anon key versus service role key permissions",
                    "Why the session is refreshed in middleware",
                ],
                "prerequisite_concepts": [],
                "tags": ["client", "setup", "anon-key", "service-role"],
            },
            {
                "concept_key": "supabase-auth",
                "concept_name": "Authentication with Supabase Auth",
                "key_points": [
                    "Supports email and password, OAuth and magic links",
                    "signUp, signInWithPassword and signOut are the basic methods",
                    "getUser() returns the signed-in user",
                    "Sessions are managed through cookies",
                    "Middleware guards protected routes",
                ],
                "common_quiz_topics": [
                    "getUser() versus getSession()",
                    "Redirecting on auth state",
                    "How RLS relates to Auth",
                ],
                "prerequisite_concepts": ["supabase-client"],
                "tags": ["auth", "session", "login", "signup", "middleware"],
            },
            {
                "concept_key": "supabase-queries",
                "concept_name": "Reading and writing data",
                "key_points": [
                    "select(), insert(), update() and delete() cover CRUD",
                    "Filters such as eq(), neq(), gt() and lt() chain onto a query",
                    "single() returns one row; order() sorts",
                    "select('*, profiles(*)') fetches related rows",
                    "upsert() inserts or updates in one call",
                ],
                "common_quiz_topics": [
                    "Fetching related data in select",
                    "The { data, error } result pattern",
                    "How filter chaining is applied",
                ],
                "prerequisite_concepts": ["supabase-client"],
                "tags": ["query", "select", "insert", "update", "delete", "filter"],
            },
            {
                "concept_key": "supabase-rls",
                "concept_name": "Row Level Security",
                "key_points": [
                    "RLS controls access per row inside the database",
                    "Policies define rules for SELECT, INSERT, UPDATE and DELETE",
                    "auth.uid() refers to the signed-in user's id",
                    "With RLS enabled, no data is reachable without a policy",
                    "The service role key bypasses RLS",
                ],
                "common_quiz_topics": [
                    "Security problems without RLS",
                    "What auth.uid() = user_id means",
                    "Why the service role key bypasses RLS",
                ],
                "prerequisite_concepts": ["supabase-auth", "supabase-queries"],
                "tags": ["RLS", "policy", "security", "auth.uid"],
            },
            {
                "concept_key": "supabase-storage",
                "concept_name": "Managing files with Supabase Storage",
                "key_points": [
                    "Buckets group files",
                    "upload(), download() and getPublicUrl() handle files",
                    "File access uses the same policy system as RLS",
                    "Image transformations are built in",
                ],
                "common_quiz_topics": [
                    "Public versus private buckets",
                    "Authenticating uploads",
                    "Writing storage policies",
                ],
                "prerequisite_concepts": ["supabase-client", "supabase-rls"],
                "tags": ["storage", "bucket", "upload", "file"],
            },
        ],
    },
    {
        "technology_name": "Tailwind CSS",
        "version": "4",
        "concepts": [
            {
                "concept_key": "utility-first",
                "concept_name": "Utility-first CSS",
                "key_points": [
                    "Styles come from composing predefined utility classes",
                    "Styling happens in the markup without separate CSS files",
                    "The class name is the style: flex, p-4, text-lg, bg-zinc-100",
                    "A built-in design system keeps spacing, colour and sizing consistent",
                ],
                "common_quiz_topics": [
                    "Pros and cons of utility-first",
                    "Reading styles from class names",
                    "Inline styles versus utility classes",
                ],
                "prerequisite_concepts": [],
                "tags": ["utility", "class", "styling", "design-system"],
            },
            {
                "concept_key": "responsive-design",
                "concept_name": "Responsive design",
                "key_points": [
                    "sm:, md:, lg: and xl: prefixes apply styles per breakpoint",
                    "Mobile first: unprefixed styles target mobile",
                    "Responsive prefixes on flex and grid reshape layouts",
                    "hidden and block toggle visibility",
                ],
                "common_quiz_topics": [
                    "What mobile first means in practice",
                    "Breakpoint sizes and the order they apply in",
                    "Building a responsive grid",
                ],
                "prerequisite_concepts": ["utility-first"],
                "tags": ["responsive", "breakpoint", "mobile-first", "sm", "md", "lg"],
            },
            {
                "concept_key": "flexbox-grid",
                "concept_name": "Flexbox and Grid layouts",
                "key_points": [
                    "flex lays out in one dimension",
                    "grid lays out rows and columns together",
                    "items-center and justify-between align items",
                    "gap-4 sets spacing between items",
                    "flex-col and grid-cols-3 set direction and column count",
                ],
                "common_quiz_topics": [
                    "When to use flex versus grid",
                    "Ways to center an element",
                    "gap versus padding and margin",
                ],
                "prerequisite_concepts": ["utility-first"],
                "tags": ["flex", "grid", "layout", "alignment", "gap"],
            },
            {
                "concept_key": "dark-mode",
                "concept_name": "Dark mode",
                "key_points": [
                    "The dark: prefix applies dark mode styles",
                    "bg-white dark:bg-zinc-900 switches colours",
                    "Dark mode follows the system setting or a manual toggle",
                    "v4 themes are built on CSS variables",
                ],
                "common_quiz_topics": [
                    "How the dark: prefix works",
                    "Implementing a dark mode toggle",
                    "Designing a colour palette",
                ],
                "prerequisite_concepts": ["utility-first"],
                "tags": ["dark-mode", "theme", "color", "dark:"],
            },
            {
                "concept_key": "tailwind-customization",
                "concept_name": "Customizing and extending",
                "key_points": [
                    "The theme extends colours, spacing and fonts",
                    "@layer utilities adds custom utility classes",
                    "Plugins add features such as typography and forms",
                    "CSS variables drive dynamic theme values",
                ],
                "common_quiz_topics": [
                    "Extending versus overriding the theme",
                    "Adding a custom colour",
                    "What @apply is for and its pitfalls",
                ],
                "prerequisite_concepts": ["utility-first"],
                "tags": ["config", "theme", "plugin", "custom", "extend"],
            },
        ],
    },
]


def seed_tech_names() -> list[str]:
    """Display names of the technologies covered by bundled seed knowledge."""
    return [item["technology_name"] for item in SEED_KNOWLEDGE]


def load_seed_concepts(item: dict[str, Any]) -> list[ConceptHint]:
    """Validate one seed record's concepts with the generation rules."""
    concepts = [ConceptHint(**c) for c in item["concepts"]]
    validate_prerequisites(concepts)
    return concepts


async def seed_store(
    store: BaseEntryStore, seeds: list[dict[str, Any]] | None = None
) -> int:
    """Insert seed knowledge into ``store``.

    Returns:
        Number of entries inserted (existing keys are skipped).
    """
    inserted = 0
    for item in SEED_KNOWLEDGE if seeds is None else seeds:
        name = item["technology_name"]
        created = await store.insert_seeded(
            normalize_key(name), name, item.get("version"), load_seed_concepts(item)
        )
        if created:
            inserted += 1
            logger.info("Seeded knowledge for %s", name)
        else:
            logger.debug("Seed skipped for %s: entry exists", name)
    return inserted
