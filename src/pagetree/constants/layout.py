"""On-disk layout of a module.

Each module directory under the assets root looks like:

    <module>/
        pages/
            _order.json              # ordering override
            <page>/
                page.json            # sidecar metadata
                screenshots/ html/ css/
                subpages/
                    <subpage>/
                        page.json
                        screenshots/ html/ css/
"""

PAGES_DIR = "pages"
SUBPAGES_DIR = "subpages"
META_FILENAME = "page.json"
ORDER_FILENAME = "_order.json"

# Asset folders owned by every node. Only file counts matter.
ASSET_SUBDIRS = ("screenshots", "html", "css")

# Status seeded into the metadata of newly created nodes.
DEFAULT_STATUS = "draft"

# Subpages created by apply_crud_subpages, with the action each one is seeded with.
CRUD_SUBPAGES = (
    ("list", "list"),
    ("create", "create"),
    ("detail", "view"),
    ("edit", "edit"),
)

# Characters never allowed in a slug.
SLUG_FORBIDDEN_CHARS = ("/", "\\")
