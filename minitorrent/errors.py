'''
every way a bencode buffer can fail to decode.
all of them are ValueError so callers can treat any of them
as "not a valid bencoded document"
'''


class BencodeError(ValueError):
    message = "Invalid bencode"

    def __init__(self, offset, detail=None):
        self.offset = offset #where the failing value started
        self.detail = detail
        text = f"{self.message} at offset {offset}"
        if detail:
            text += f": {detail}"
        super().__init__(text)


class UnexpectedEndOfData(BencodeError):
    message = "Unexpected end of data"


class InvalidPrefix(BencodeError):
    message = "Unknown bencode type"


class InvalidInteger(BencodeError):
    message = "Invalid integer"


class NonUtf8Integer(InvalidInteger):
    message = "Integer is not valid UTF-8"


class NonUtf8DictKey(BencodeError):
    message = "Dictionary key is not valid UTF-8"


class NonByteStringDictKey(BencodeError):
    message = "Dictionary key is not a byte string"


class DataAfterBencode(BencodeError):
    message = "Data after bencode"


class NestingTooDeep(BencodeError):
    message = "Nesting too deep"


class NodeBudgetExceeded(BencodeError):
    message = "Too many values"
