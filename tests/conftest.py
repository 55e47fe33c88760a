"""
Shared fixtures for the site-ledger test suite.

Everything here is an in-memory snapshot as the project/labor APIs return it;
no files or network are involved unless a test asks for `tmp_path`.
"""

from datetime import datetime, timedelta, timezone

import pytest

# Fixed zone so calendar-day assertions do not depend on the machine running them.
IST = timezone(timedelta(hours=5, minutes=30), "IST")


@pytest.fixture
def ist():
    return IST


@pytest.fixture
def now_ist():
    """10 Mar 2025, 18:00 IST."""
    return datetime(2025, 3, 10, 18, 0, tzinfo=IST)


@pytest.fixture
def raw_materials():
    """
    Two cement imports (same name, same specs, spec keys in different order and
    name in different case), one cement with a different grade, one steel row
    without totalCost, all in mini-section ms-1.
    """
    return [
        {
            "_id": "m1",
            "name": "Cement",
            "unit": "bag",
            "qnt": 10,
            "perUnitCost": 100,
            "totalCost": 1000,
            "specs": {"grade": "53", "brand": "ACC"},
            "addedAt": "2025-03-10T04:30:00Z",
            "note": "first lot",
            "sectionId": "sec-1",
            "miniSectionId": "ms-1",
        },
        {
            "_id": "m2",
            "name": "cement",
            "unit": "bag",
            "qnt": 5,
            "cost": 100,
            "specs": {"brand": "ACC", "grade": "53"},
            "addedAt": "2025-03-09T05:00:00Z",
            "note": "second lot",
            "sectionId": "sec-1",
            "miniSectionId": "ms-1",
        },
        {
            "_id": "m3",
            "name": "Cement",
            "unit": "bag",
            "qnt": 4,
            "perUnitCost": 120,
            "specs": {"grade": "43", "brand": "ACC"},
            "addedAt": "2025-03-10T06:00:00Z",
            "sectionId": "sec-1",
            "miniSectionId": "ms-1",
        },
        {
            "_id": "m4",
            "name": "Steel Rod",
            "unit": "kg",
            "qnt": 200,
            "cost": 60,
            "addedAt": "2025-03-08T10:00:00Z",
            "note": "first lot",
            "sectionId": "sec-1",
            "miniSectionId": "ms-1",
        },
    ]


@pytest.fixture
def raw_labor():
    """Masons on two days with different headcounts and rates, plus one electrician."""
    return [
        {
            "_id": "l1",
            "category": "Civil Works Labour",
            "type": "Mason",
            "count": 5,
            "perLaborCost": 800,
            "totalCost": 4000,
            "workDate": "2025-03-10T03:00:00Z",
            "sectionId": "sec-1",
            "miniSectionId": "ms-1",
        },
        {
            "_id": "l2",
            "category": "civil works labour",
            "type": "MASON",
            "count": 3,
            "perLaborCost": 1000,
            "createdAt": "2025-03-09T03:00:00Z",
            "sectionId": "sec-1",
            "miniSectionId": "ms-1",
        },
        {
            "_id": "l3",
            "category": "Electrical Works Labour",
            "type": "Electrician",
            "count": 2,
            "perLaborCost": 900,
            "createdAt": "2025-03-10T07:00:00Z",
            "sectionId": "sec-1",
            "miniSectionId": "ms-2",
        },
    ]


@pytest.fixture
def raw_assignments():
    return [
        {
            "clientId": "c1",
            "clientName": "Acme Builders",
            "projectData": {"_id": "p1", "name": "Tower A"},
        },
        {
            "clientId": "c2",
            "clientName": "Nova Infra",
            "projectData": {"_id": "p2", "name": "Mall"},
        },
        {
            "clientId": "c3",
            "clientName": None,
            "projectData": {"_id": "p3", "name": "Villa"},
        },
    ]
