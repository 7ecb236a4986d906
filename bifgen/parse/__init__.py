from .scanner import Scanner
from .prototype import PrototypeParser, PrototypeError, PrototypeTransformer
from .stanza import BuiltinFileParser, OverloadFileParser
