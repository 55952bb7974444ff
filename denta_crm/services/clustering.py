"""
Card index: group visit records into client identities and find identities
that probably belong to the same person.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import List, Optional

from denta_crm.utils.identity import normalize_name, names_are_similar, normalize_phone_digits

PHONE_MIN_DIGITS = 10
# First words this short are too common to bucket on
NAME_BUCKET_MIN_LENGTH = 2

REASON_PHONE = 'phone'
REASON_NAME = 'name'

NO_NAME = 'Без имени'


@dataclass
class ClientIdentity:
    """All visits sharing (normalized name, birth date)."""
    name: str
    birth_date: Optional[str]
    phones: List[str] = field(default_factory=list)
    emoji: Optional[str] = None
    notes: Optional[str] = None
    ignored_ids: List[str] = field(default_factory=list)
    records: list = field(default_factory=list)

    @property
    def normalized_name(self):
        return normalize_name(self.name)

    @property
    def key(self):
        return identity_key(self.name, self.birth_date)

    @property
    def record_ids(self):
        return [record.id for record in self.records]

    def to_dict(self, include_records=True):
        data = {
            'name': self.name,
            'birth_date': self.birth_date,
            'phones': list(self.phones),
            'emoji': self.emoji,
            'notes': self.notes,
            'ignored_ids': list(self.ignored_ids),
            'visit_count': len(self.records),
        }
        if include_records:
            data['records'] = [record.to_dict() for record in self.records]
        return data


@dataclass
class DuplicateGroup:
    label: str
    reason: str
    clients: List[ClientIdentity]

    def to_dict(self):
        return {
            'label': self.label,
            'reason': self.reason,
            'clients': [client.to_dict(include_records=False) for client in self.clients],
        }


def identity_key(name, birth_date):
    """Stable key of a client identity; a missing birth date is ''."""
    return f"{normalize_name(name)}|{birth_date or ''}"


def duplicate_pair_id(first, second):
    """Order-independent tag for a pair of identities."""
    return ':::'.join(sorted([first.key, second.key]))


def group_patients(records):
    """
    Group flat visit records into ClientIdentity objects keyed by
    normalized name and birth date, sorted by display name.
    """
    grouped = {}

    for record in records:
        name = (record.full_name or '').strip() or NO_NAME
        birth_date = record.birth_date or None
        key = identity_key(name, birth_date)

        client = grouped.get(key)
        if client is None:
            client = ClientIdentity(name=name, birth_date=birth_date)
            grouped[key] = client

        if record.emoji and not client.emoji:
            client.emoji = record.emoji
        if record.notes and not client.notes:
            client.notes = record.notes
        if record.phone and record.phone not in client.phones:
            client.phones.append(record.phone)

        client.records.append(record)

    return sorted(grouped.values(), key=_sort_key)


def _sort_key(client):
    return (client.name, client.birth_date or '')


def _group_key(clients):
    return '||'.join(sorted(f"{client.name}|{client.birth_date or ''}" for client in clients))


def _distinct(clients):
    """Drop repeated identities while keeping order."""
    seen = set()
    unique = []
    for client in clients:
        if client.key in seen:
            continue
        seen.add(client.key)
        unique.append(client)
    return unique


def _phone_candidates(clients):
    phone_to_clients = defaultdict(list)
    for client in clients:
        for phone in client.phones:
            digits = normalize_phone_digits(phone)
            if len(digits) >= PHONE_MIN_DIGITS:
                phone_to_clients[digits].append(client)

    for digits in sorted(phone_to_clients):
        members = _distinct(phone_to_clients[digits])
        if len(members) > 1:
            yield DuplicateGroup(label=f'Телефон: {digits}', reason=REASON_PHONE, clients=members)


def _connected_components(members):
    parent = list(range(len(members)))

    def find(i):
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i in range(len(members)):
        for j in range(i + 1, len(members)):
            if names_are_similar(members[i].name, members[j].name):
                root_i, root_j = find(i), find(j)
                if root_i != root_j:
                    parent[max(root_i, root_j)] = min(root_i, root_j)

    components = defaultdict(list)
    for i, member in enumerate(members):
        components[find(i)].append(member)
    return [components[root] for root in sorted(components)]


def _name_candidates(clients):
    buckets = defaultdict(list)
    for client in clients:
        normalized = client.normalized_name
        first_word = normalized.split(' ')[0] if normalized else ''
        if len(first_word) > NAME_BUCKET_MIN_LENGTH:
            buckets[first_word].append(client)

    for first_word in sorted(buckets):
        members = _distinct(buckets[first_word])
        if len(members) < 2:
            continue
        for component in _connected_components(members):
            if len(component) > 1:
                yield DuplicateGroup(label=f'ФИО: {component[0].name}', reason=REASON_NAME, clients=component)


def _is_ignored(first, second):
    pair_id = duplicate_pair_id(first, second)
    return pair_id in first.ignored_ids or pair_id in second.ignored_ids


def _active_members(clients):
    """
    The first member by name is the target. A member is dropped when it is
    ignored against the target or against any member already kept.
    """
    ordered = sorted(clients, key=_sort_key)
    active = [ordered[0]]
    for other in ordered[1:]:
        if any(_is_ignored(member, other) for member in active):
            continue
        active.append(other)
    return active


def find_potential_duplicates(clients):
    """
    Candidate duplicate groups: identities sharing a phone number, then
    identities with similar names. A group already found by phone is not
    reported again by name. Groups left with fewer than two members after
    ignored pairs are removed are dropped.
    """
    ordered = sorted(clients, key=_sort_key)

    groups = []
    emitted = set()
    for candidate in list(_phone_candidates(ordered)) + list(_name_candidates(ordered)):
        key = _group_key(candidate.clients)
        if key in emitted:
            continue
        emitted.add(key)

        active = _active_members(candidate.clients)
        if len(active) > 1:
            groups.append(DuplicateGroup(label=candidate.label, reason=candidate.reason, clients=active))

    return groups
