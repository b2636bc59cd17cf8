from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Dict, List

from app.schemas.balances import SimplifiedTransaction

getcontext().prec = 28
CENTS = Decimal("0.01")
EPSILON = Decimal("0.01")
ZERO = Decimal("0")


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def simplify_debts(net_map: Dict[int, Decimal]) -> List[SimplifiedTransaction]:
    """
    Greedy two-pointer matching of debtors against creditors.

    Creditors are walked largest first and debtors most negative first, so the
    biggest positions clear early. Produces at most n - 1 transfers for n
    non-zero balances; not guaranteed to be globally minimal.
    """
    creditors = []
    debtors = []

    for uid, bal in net_map.items():
        bal = Decimal(bal)
        if bal > EPSILON:
            creditors.append([uid, bal])
        elif bal < -EPSILON:
            debtors.append([uid, bal])

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1])

    transfers: List[SimplifiedTransaction] = []
    i = 0
    j = 0

    while i < len(creditors) and j < len(debtors):
        cred_id, cred_amt = creditors[i]
        debt_id, debt_amt = debtors[j]

        amount = min(cred_amt, -debt_amt)

        transfers.append(SimplifiedTransaction(
            from_user_id=debt_id,
            to_user_id=cred_id,
            amount=qround(amount),
        ))

        creditors[i][1] = cred_amt - amount
        debtors[j][1] = debt_amt + amount

        if abs(creditors[i][1]) <= EPSILON:
            i += 1
        if abs(debtors[j][1]) <= EPSILON:
            j += 1

    return transfers


def is_balanced(net_map: Dict[int, Decimal], tolerance: Decimal = EPSILON) -> bool:
    """A closed scope nets to zero: abs(sum of balances) <= tolerance."""
    total = sum((Decimal(v) for v in net_map.values()), ZERO)
    return abs(total) <= tolerance


def is_settled(net_map: Dict[int, Decimal], tolerance: Decimal = Decimal("0.05")) -> bool:
    """
    A scope is settled if:
        abs(net_balance) <= tolerance
        for every member
    """
    for amount in net_map.values():
        if abs(amount) > tolerance:
            return False

    return True
