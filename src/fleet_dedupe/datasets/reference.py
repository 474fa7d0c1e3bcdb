from __future__ import annotations

import random

from fleet_dedupe.models import CustomerRecord

_FIRST_NAMES = [
    "Mohammed",
    "Ahmed",
    "Fatima",
    "Yousef",
    "Aisha",
    "Khalid",
    "Philip",
    "Maria",
    "Rajesh",
    "Sarah",
]
_LAST_NAMES = [
    "Al Thani",
    "Hassan",
    "Ibrahim",
    "Fernandes",
    "Kumar",
    "Mansour",
    "Nasser",
    "Smith",
]
_SPELLING_VARIANTS = {
    "mohammed": "Muhammad",
    "ahmed": "Ahmad",
    "yousef": "Youssef",
    "aisha": "Ayesha",
    "philip": "Phillip",
    "hassan": "Hasan",
    "fernandes": "Fernandez",
}
_DOMAINS = ["gmail.com", "outlook.com", "yahoo.com", "example.qa"]


class ReferenceDatasetGenerator:
    """Generate synthetic customers (with intentional dupes) for tests and benchmarks."""

    def __init__(self, seed: int = 7) -> None:
        self._rng = random.Random(seed)

    def generate(self, size: int, duplicate_rate: float = 0.15) -> list[CustomerRecord]:
        if size <= 0:
            return []

        unique_count = int(size * (1.0 - duplicate_rate))
        unique_count = max(1, min(unique_count, size))

        records = [self._profile(i) for i in range(unique_count)]
        while len(records) < size:
            source = self._rng.choice(records[:unique_count])
            records.append(self._perturb(source, f"cust_{len(records):07d}"))

        self._rng.shuffle(records)
        return records

    def _profile(self, idx: int) -> CustomerRecord:
        first_name = self._rng.choice(_FIRST_NAMES)
        last_name = self._rng.choice(_LAST_NAMES)
        email_local = f"{first_name}.{last_name.replace(' ', '')}{idx % 97}".lower()
        subscriber = f"{33000000 + idx:08d}"
        return CustomerRecord(
            id=f"cust_{idx:07d}",
            full_name=f"{first_name} {last_name}",
            phone_number=f"+974 {subscriber[:4]} {subscriber[4:]}",
            email=f"{email_local}@{self._rng.choice(_DOMAINS)}",
        )

    def _perturb(self, source: CustomerRecord, record_id: str) -> CustomerRecord:
        record = CustomerRecord(
            id=record_id,
            full_name=source.full_name,
            phone_number=source.phone_number,
            email=source.email,
        )
        mutation = self._rng.choice(["phone", "name", "email", "mixed"])

        if mutation in {"phone", "mixed"} and record.phone_number:
            record.phone_number = self._phone_variant(record.phone_number)
        if mutation in {"name", "mixed"} and record.full_name:
            record.full_name = self._name_variant(record.full_name)
        if mutation in {"email", "mixed"} and record.email:
            record.email = self._email_variant(record.email)

        # Name-only duplicates: the contact details were never captured.
        if mutation == "name":
            record.phone_number = None
            record.email = None
        return record

    def _phone_variant(self, phone: str) -> str:
        digits = "".join(ch for ch in phone if ch.isdigit())
        subscriber = digits[-8:]
        variant = self._rng.choice(["local", "intl", "dashed"])
        if variant == "local":
            return subscriber
        if variant == "intl":
            return f"00974{subscriber}"
        return f"{subscriber[:4]}-{subscriber[4:]}"

    def _name_variant(self, name: str) -> str:
        parts = name.split()
        variant = self._rng.choice(["spelling", "reorder", "case", "typo"])

        if variant == "spelling":
            return " ".join(_SPELLING_VARIANTS.get(part.lower(), part) for part in parts)
        if variant == "reorder" and len(parts) > 1:
            return " ".join([*parts[1:], parts[0]])
        if variant == "case":
            return f"  {name.upper()} "
        longest = max(parts, key=len)
        if len(longest) > 4:
            cut = len(longest) // 2
            parts[parts.index(longest)] = longest[:cut] + longest[cut + 1 :]
        return " ".join(parts)

    def _email_variant(self, email: str) -> str:
        if "@" not in email:
            return email
        local, domain = email.split("@", maxsplit=1)
        variant = self._rng.choice(["case", "typo", "digit"])

        if variant == "case":
            return f"{local.capitalize()}@{domain}"
        if variant == "typo" and len(local) > 3:
            return f"{local[:-2]}{local[-1]}{local[-2]}@{domain}"
        return f"{local}1@{domain}"
