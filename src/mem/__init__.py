"""mem — markdown knowledge store backed by a directory tree.

Layout:
    <project>/.mems/
    ├── arch/
    │   └── decisions/
    │       └── adr-001.md     # YAML frontmatter + markdown body
    ├── glossary.md
    └── archive/               # archived mems, same relative paths

Stores are found by walking up from the working directory (`find_root`).
"""

from mem.document import Document, decode, encode
from mem.store import Store, create_root, find_root

__all__ = ["Document", "Store", "create_root", "decode", "encode", "find_root"]
