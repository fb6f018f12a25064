"""City and county income tax rates.

Rates are annual percentages on earned income. Residents of a listed city pay
the resident rate; employees working in a different listed city also pay
that city's non-resident rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from benefits_engine.calculators.types import ZERO, to_decimal


@dataclass(frozen=True)
class LocalTaxRate:
    """Local income tax rate for one jurisdiction."""

    state: str
    city: str
    resident_rate: Decimal
    non_resident_rate: Decimal


# state -> city -> (resident_rate, non_resident_rate)
_RATES: dict[str, dict[str, tuple[str, str]]] = {
    "IN": {
        "ADAMS": ("0.0160", "0"),
        "ALLEN": ("0.0159", "0"),
        "BARTHOLOMEW": ("0.0175", "0"),
        "BENTON": ("0.0179", "0"),
        "BLACKFORD": ("0.0250", "0"),
        "BOONE": ("0.0170", "0"),
        "BROWN": ("0.0252", "0"),
        "CARROLL": ("0.0227", "0"),
        "CASS": ("0.0295", "0"),
        "CLARK": ("0.0200", "0"),
        "CLAY": ("0.0235", "0"),
        "CLINTON": ("0.0265", "0"),
        "CRAWFORD": ("0.0165", "0"),
        "DAVIESS": ("0.0150", "0"),
        "DEARBORN": ("0.0140", "0"),
        "DECATUR": ("0.0245", "0"),
        "DEKALB": ("0.0213", "0"),
        "DELAWARE": ("0.0150", "0"),
        "DUBOIS": ("0.0120", "0"),
        "ELKHART": ("0.0200", "0"),
        "FAYETTE": ("0.0282", "0"),
        "FLOYD": ("0.0139", "0"),
        "FOUNTAIN": ("0.0210", "0"),
        "FRANKLIN": ("0.0170", "0"),
        "FULTON": ("0.0288", "0"),
        "GIBSON": ("0.0090", "0"),
        "GRANT": ("0.0255", "0"),
        "GREENE": ("0.0215", "0"),
        "HAMILTON": ("0.0110", "0"),
        "HANCOCK": ("0.0194", "0"),
        "HARRISON": ("0.0100", "0"),
        "HENDRICKS": ("0.0170", "0"),
        "HENRY": ("0.0202", "0"),
        "HOWARD": ("0.0195", "0"),
        "HUNTINGTON": ("0.0195", "0"),
        "JACKSON": ("0.0210", "0"),
        "JASPER": ("0.0286", "0"),
        "JAY": ("0.0245", "0"),
        "JEFFERSON": ("0.0103", "0"),
        "JENNINGS": ("0.0250", "0"),
        "JOHNSON": ("0.0140", "0"),
        "KNOX": ("0.0170", "0"),
        "KOSCIUSKO": ("0.0100", "0"),
        "LAGRANGE": ("0.0165", "0"),
        "LAKE": ("0.0150", "0"),
        "LAPORTE": ("0.0145", "0"),
        "LAWRENCE": ("0.0175", "0"),
        "MADISON": ("0.0225", "0"),
        "MARION": ("0.0202", "0"),
        "MARSHALL": ("0.0125", "0"),
        "MARTIN": ("0.0180", "0"),
        "MIAMI": ("0.0234", "0"),
        "MONROE": ("0.0135", "0"),
        "MONTGOMERY": ("0.0234", "0"),
        "MORGAN": ("0.0268", "0"),
        "NEWTON": ("0.0195", "0"),
        "NOBLE": ("0.0175", "0"),
        "OHIO": ("0.0120", "0"),
        "ORANGE": ("0.0250", "0"),
        "OWEN": ("0.0200", "0"),
        "PARKE": ("0.0268", "0"),
        "PERRY": ("0.0140", "0"),
        "PIKE": ("0.0120", "0"),
        "PORTER": ("0.0050", "0"),
        "POSEY": ("0.0145", "0"),
        "PULASKI": ("0.0285", "0"),
        "PUTNAM": ("0.0230", "0"),
        "RANDOLPH": ("0.0300", "0"),
        "RIPLEY": ("0.0238", "0"),
        "RUSH": ("0.0210", "0"),
        "ST. JOSEPH": ("0.0175", "0"),
        "SCOTT": ("0.0216", "0"),
        "SHELBY": ("0.0160", "0"),
        "SPENCER": ("0.0080", "0"),
        "STARKE": ("0.0171", "0"),
        "STEUBEN": ("0.0199", "0"),
        "SULLIVAN": ("0.0170", "0"),
        "SWITZERLAND": ("0.0125", "0"),
        "TIPPECANOE": ("0.0128", "0"),
        "TIPTON": ("0.0260", "0"),
        "UNION": ("0.0200", "0"),
        "VANDERBURGH": ("0.0125", "0"),
        "VERMILLION": ("0.0150", "0"),
        "VIGO": ("0.0200", "0"),
        "WABASH": ("0.0290", "0"),
        "WARREN": ("0.0212", "0"),
        "WARRICK": ("0.0100", "0"),
        "WASHINGTON": ("0.0200", "0"),
        "WAYNE": ("0.0125", "0"),
        "WELLS": ("0.0210", "0"),
        "WHITE": ("0.0232", "0"),
        "WHITLEY": ("0.0168", "0"),
    },
    "KY": {
        "LOUISVILLE": ("0.0220", "0.0145"),
        "LEXINGTON": ("0.0225", "0.0225"),
        "BOWLING GREEN": ("0.0200", "0.0200"),
        "COVINGTON": ("0.0245", "0.0245"),
        "FRANKFORT": ("0.0200", "0.0200"),
        "OWENSBORO": ("0.0150", "0.0150"),
        "HENDERSON": ("0.0150", "0.0150"),
        "RICHMOND": ("0.0200", "0.0200"),
        "GEORGETOWN": ("0.0150", "0.0150"),
        "FLORENCE": ("0.0200", "0.0200"),
        "ELIZABETHTOWN": ("0.0150", "0.0150"),
        "NICHOLASVILLE": ("0.0150", "0.0150"),
        "HOPKINSVILLE": ("0.0200", "0.0200"),
        "PADUCAH": ("0.0200", "0.0200"),
        "ASHLAND": ("0.0200", "0.0200"),
        "JEFFERSON COUNTY": ("0.0220", "0.0145"),
        "FAYETTE COUNTY": ("0.0225", "0.0225"),
        "KENTON COUNTY": ("0.006997", "0.006997"),
        "BOONE COUNTY": ("0.0080", "0.0080"),
        "CAMPBELL COUNTY": ("0.0100", "0.0100"),
        "WARREN COUNTY": ("0.0100", "0.0100"),
        "MADISON COUNTY": ("0.0100", "0.0100"),
        "MCCRACKEN COUNTY": ("0.0100", "0.0100"),
        "MCCREARY COUNTY": ("0.0150", "0.0150"),
        "CLAY COUNTY": ("0.0100", "0.0100"),
        "HARDIN COUNTY": ("0.0100", "0.0100"),
        "DAVIESS COUNTY": ("0.0100", "0.0100"),
        "CHRISTIAN COUNTY": ("0.0100", "0.0100"),
        "BOYD COUNTY": ("0.0100", "0.0100"),
        "SCOTT COUNTY": ("0.0100", "0.0100"),
        "JESSAMINE COUNTY": ("0.0100", "0.0100"),
        "HENDERSON COUNTY": ("0.0100", "0.0100"),
        "FRANKLIN COUNTY": ("0.0100", "0.0100"),
        "PIKE COUNTY": ("0.0100", "0.0100"),
        "PULASKI COUNTY": ("0.0100", "0.0100"),
        "LAUREL COUNTY": ("0.0100", "0.0100"),
        "BULLITT COUNTY": ("0.0100", "0.0100"),
        "NELSON COUNTY": ("0.0100", "0.0100"),
        "GRAVES COUNTY": ("0.0100", "0.0100"),
        "HOPKINS COUNTY": ("0.0100", "0.0100"),
        "GREENUP COUNTY": ("0.0100", "0.0100"),
        "CLARK COUNTY": ("0.0100", "0.0100"),
        "MUHLENBERG COUNTY": ("0.0100", "0.0100"),
        "WHITLEY COUNTY": ("0.0100", "0.0100"),
        "BELL COUNTY": ("0.0100", "0.0100"),
        "FLOYD COUNTY": ("0.0100", "0.0100"),
        "PERRY COUNTY": ("0.0100", "0.0100"),
        "KNOX COUNTY": ("0.0100", "0.0100"),
        "LETCHER COUNTY": ("0.0100", "0.0100"),
        "HARLAN COUNTY": ("0.0150", "0.0150"),
    },
    "MD": {
        "ALLEGANY": ("0.0303", "0"),
        "ANNE ARUNDEL": ("0.0294", "0"),
        "BALTIMORE COUNTY": ("0.0320", "0"),
        "BALTIMORE CITY": ("0.0320", "0"),
        "CALVERT": ("0.0320", "0"),
        "CAROLINE": ("0.0320", "0"),
        "CARROLL": ("0.0303", "0"),
        "CECIL": ("0.0274", "0"),
        "CHARLES": ("0.0303", "0"),
        "DORCHESTER": ("0.0330", "0"),
        "FREDERICK": ("0.0320", "0"),
        "GARRETT": ("0.0265", "0"),
        "HARFORD": ("0.0306", "0"),
        "HOWARD": ("0.0320", "0"),
        "KENT": ("0.0320", "0"),
        "MONTGOMERY": ("0.0320", "0"),
        "PRINCE GEORGES": ("0.0320", "0"),
        "QUEEN ANNES": ("0.0320", "0"),
        "ST. MARYS": ("0.0320", "0"),
        "SOMERSET": ("0.0320", "0"),
        "TALBOT": ("0.0240", "0"),
        "WASHINGTON": ("0.0295", "0"),
        "WICOMICO": ("0.0320", "0"),
        "WORCESTER": ("0.0225", "0"),
    },
    "MI": {
        "ALBION": ("0.01", "0.005"),
        "BATTLE CREEK": ("0.01", "0.005"),
        "BENTON HARBOR": ("0.01", "0.005"),
        "BIG RAPIDS": ("0.01", "0.005"),
        "DETROIT": ("0.024", "0.012"),
        "EAST LANSING": ("0.01", "0.005"),
        "FLINT": ("0.01", "0.005"),
        "GRAND RAPIDS": ("0.015", "0.0075"),
        "GRAYLING": ("0.01", "0.005"),
        "HAMTRAMCK": ("0.01", "0.005"),
        "HIGHLAND PARK": ("0.02", "0.01"),
        "HUDSON": ("0.01", "0.005"),
        "IONIA": ("0.01", "0.005"),
        "JACKSON": ("0.01", "0.005"),
        "LANSING": ("0.01", "0.005"),
        "LAPEER": ("0.01", "0.005"),
        "MUSKEGON": ("0.01", "0.005"),
        "MUSKEGON HEIGHTS": ("0.01", "0.005"),
        "PONTIAC": ("0.01", "0.005"),
        "PORT HURON": ("0.01", "0.005"),
        "PORTLAND": ("0.01", "0.005"),
        "SAGINAW": ("0.015", "0.0075"),
        "SPRINGFIELD": ("0.01", "0.005"),
        "WALKER": ("0.01", "0.005"),
    },
    "NY": {
        "NEW YORK CITY": ("0.03876", "0"),
        "MANHATTAN": ("0.03876", "0"),
        "BROOKLYN": ("0.03876", "0"),
        "QUEENS": ("0.03876", "0"),
        "BRONX": ("0.03876", "0"),
        "STATEN ISLAND": ("0.03876", "0"),
        "YONKERS": ("0.01675", "0.005"),
    },
    "OH": {
        "AKRON": ("0.0225", "0.0225"),
        "CANTON": ("0.02", "0.02"),
        "CINCINNATI": ("0.021", "0.021"),
        "CLEVELAND": ("0.025", "0.025"),
        "COLUMBUS": ("0.025", "0.025"),
        "DAYTON": ("0.0225", "0.0225"),
        "TOLEDO": ("0.0225", "0.0225"),
        "YOUNGSTOWN": ("0.0275", "0.0275"),
        "ADA": ("0.0165", "0.0165"),
        "ALGER": ("0.01", "0.01"),
        "BARBERTON": ("0.0225", "0.0225"),
        "BRATENAHL": ("0.02", "0.02"),
        "BURTON": ("0.01", "0.01"),
        "CLAYTON": ("0.015", "0.015"),
        "DRESDEN": ("0.01", "0.01"),
        "ELIDA": ("0.0075", "0.0075"),
        "FRAZEYSBURG": ("0.01", "0.01"),
        "GATES MILLS": ("0.01", "0.01"),
        "GENEVA-ON-THE-LAKE": ("0.015", "0.015"),
        "GERMANTOWN": ("0.015", "0.015"),
        "GRAND RAPIDS": ("0.01", "0.01"),
        "GRAND RIVER": ("0.02", "0.02"),
        "HAMILTON": ("0.02", "0.02"),
        "HIGHLAND HILLS": ("0.025", "0.025"),
        "LINNDALE": ("0.02", "0.02"),
        "LORAIN": ("0.02", "0.02"),
        "MARBLE CLIFF": ("0.02", "0.02"),
        "MENTOR-ON-THE-LAKE": ("0.02", "0.02"),
        "MONTPELIER": ("0.016", "0.016"),
        "MUNROE FALLS": ("0.0225", "0.0225"),
        "NEW CARLISLE": ("0.015", "0.015"),
        "NEW MADISON": ("0.01", "0.01"),
        "NEW MIAMI": ("0.0175", "0.0175"),
        "NORTH RANDALL": ("0.0275", "0.0275"),
        "PARMA": ("0.025", "0.025"),
        "PARMA HEIGHTS": ("0.03", "0.03"),
        "RIVERSIDE": ("0.015", "0.015"),
        "SOUTH RUSSELL": ("0.0125", "0.0125"),
        "SPRINGFIELD": ("0.02", "0.02"),
        "UNION": ("0.015", "0.015"),
        "CLEVELAND HEIGHTS": ("0.0225", "0.0225"),
        "CUYAHOGA FALLS": ("0.02", "0.02"),
        "ELYRIA": ("0.0225", "0.0225"),
        "EUCLID": ("0.0285", "0.0285"),
        "KENT": ("0.0225", "0.0225"),
        "LAKEWOOD": ("0.015", "0.015"),
        "MENTOR": ("0.02", "0.02"),
        "WARREN": ("0.025", "0.025"),
        "WESTERVILLE": ("0.02", "0.02"),
    },
    "PA": {
        "PHILADELPHIA": ("0.0374", "0.0343"),
        "PITTSBURGH": ("0.03", "0.03"),
        "READING": ("0.036", "0.036"),
        "SCRANTON": ("0.034", "0.034"),
        "WILKES BARRE": ("0.03", "0.03"),
        "ALLENTOWN": ("0.0135", "0.0135"),
        "ALTOONA": ("0.012", "0.012"),
        "BETHLEHEM": ("0.01", "0.01"),
        "ERIE": ("0.0118", "0.0118"),
        "HARRISBURG": ("0.01", "0.01"),
        "LANCASTER": ("0.011", "0.011"),
        "YORK": ("0.01", "0.01"),
    },
}

LOCAL_TAX_RATES: dict[str, dict[str, LocalTaxRate]] = {
    state: {
        city: LocalTaxRate(
            state=state,
            city=city,
            resident_rate=Decimal(resident),
            non_resident_rate=Decimal(non_resident),
        )
        for city, (resident, non_resident) in cities.items()
    }
    for state, cities in _RATES.items()
}


def _normalize(value: str | None) -> str:
    return (value or "").strip().upper()


def get_local_tax_rate(state: str | None, city: str | None) -> LocalTaxRate | None:
    """Look up a jurisdiction by state code and city name (case-insensitive)."""
    return LOCAL_TAX_RATES.get(_normalize(state), {}).get(_normalize(city))


def calculate_local_tax(
    annual_income: Decimal,
    residence_state: str,
    residence_city: str,
    work_state: str | None = None,
    work_city: str | None = None,
) -> Decimal:
    """Annual local tax for residence and (if different) work jurisdictions."""
    income = max(ZERO, to_decimal(annual_income))
    total = ZERO

    residence = get_local_tax_rate(residence_state, residence_city)
    if residence is not None:
        total += income * residence.resident_rate

    if work_state and work_city:
        same_city = _normalize(work_city) == _normalize(residence_city)
        same_state = _normalize(work_state) == _normalize(residence_state)
        if not (same_city and same_state):
            work = get_local_tax_rate(work_state, work_city)
            if work is not None:
                total += income * work.non_resident_rate

    return total


def cities_with_local_tax(state: str) -> list[str]:
    """List taxing cities/counties for a state."""
    return sorted(LOCAL_TAX_RATES.get(_normalize(state), {}))


def state_has_local_tax(state: str) -> bool:
    return bool(LOCAL_TAX_RATES.get(_normalize(state)))
