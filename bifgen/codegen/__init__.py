from .writer import header_text, init_text, defines_text
from .typenode import type_node, fntype_nodes
