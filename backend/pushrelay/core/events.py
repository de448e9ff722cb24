# Record store event names understood by the creation hook

RECORD_CREATE = "create"
RECORD_UPDATE = "update"
RECORD_DELETE = "delete"

# Supabase-style database webhook "type" values → record actions
DATABASE_ACTIONS = {
    "INSERT": RECORD_CREATE,
    "UPDATE": RECORD_UPDATE,
    "DELETE": RECORD_DELETE,
}
