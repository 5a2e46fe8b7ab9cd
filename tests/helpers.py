# tests/helpers.py

"""Shared fixtures for building resolver answers."""

from modules.dns import DNSAnswer

KEY_1024 = (
    "+TgtXXFV6G0eo7uGrVuIBH1r8w4hJh0b5lU2XF4mQ2c47wIKZNlyRB4EdJ7K5MV595hxOWQ+8ZsacpPXbwsrzPOYUjs0hF"
    "hMRjkzJvSc2S6k61yP1fMks3O2yp5dhBwoYKYxMrPbp8jkqtHupqKiQccYl1Gx5/yRJapXAQegWj10sdHyK1esIq0yE4lPD"
    "tqxanDFhhLfheiHYX51bHBjCfu1"
)

KEY_2048 = (
    "OB3M6A0YA+APH1NqS6BBw+RH3m7fUYvpYS836aJmEogHqxF017o1Dei5w54puinjqeIJdybNew0fI3bZtXO+30Z3MxvuYm"
    "dX1KQ+O1v1DKDswm5xMg/hcCTP5MGrSsa2ai50gRMs+DqukOD4VFzDl957h+TQBcdkZ9kizxTTg9tIwlWiE8UpscYEiUp+"
    "iCwfg6ScaJFTGDSO0eAmBsHULav461fpwFHJIUDQHSVF93AdplvU5Txl957663KePGUVPZsEZZ5Cqb9Zf3k6fw+dsjFPALl"
    "H2clj16ghgKGKdn4UJNlYeC93xw7m8+dIYrhvYAVabDNHh8t1VzaXad5kOJRlt3hpDopZv2mtBxcEFN+6tJdWi/zQJAna1l"
    "xoJ+nvI5e0legK"
)


def txt(name, data, ttl=300):
    return DNSAnswer(name=name, record_type="TXT", ttl=ttl, data=data)


def cname(name, target, ttl=300):
    return DNSAnswer(name=name, record_type="CNAME", ttl=ttl, data=target)


class FakeResolver:
    """Resolver double answering from a {(name, type): [answers]} table."""

    def __init__(self, table=None):
        self.table = table or {}
        self.queries = []

    def lookup(self, name, record_type="TXT"):
        self.queries.append((name, record_type))
        return list(self.table.get((name, record_type), []))

    __call__ = lookup
