"""
Contract ABIs for the LNDY lending contracts.

Only the functions the front-end reads or calls are declared.
"""

from typing import Dict, List, Tuple


def _param(name: str, typ: str) -> Dict[str, str]:
    return {"internalType": typ, "name": name, "type": typ}


def _function(name: str, inputs: List[Tuple[str, str]], outputs: List[Tuple[str, str]],
              mutability: str = "view") -> Dict:
    return {
        "inputs": [_param(n, t) for n, t in inputs],
        "name": name,
        "outputs": [_param(n, t) for n, t in outputs],
        "stateMutability": mutability,
        "type": "function",
    }


# Field order of getLoanDetails(); the normalizer reads by this position first
LOAN_DETAILS_OUTPUTS = [
    ("_loanAmount", "uint256"),
    ("_thankYouAmount", "uint256"),
    ("_targetRepaymentDate", "uint256"),
    ("_fundingDeadline", "uint256"),
    ("_title", "string"),
    ("_description", "string"),
    ("_baseImageURI", "string"),
    ("_borrower", "address"),
    ("_totalFunded", "uint256"),
    ("_totalRepaidAmount", "uint256"),
    ("_actualRepaidAmount", "uint256"),
    ("_isActive", "bool"),
    ("_isFullyRepaid", "bool"),
]

LAUNCHER_ABI = [
    _function("getAllLoans", [], [("", "address[]")]),
    _function("getBorrowerLoans", [("borrower", "address")], [("", "address[]")]),
    _function(
        "createLoan",
        [
            ("_loanAmount", "uint256"),
            ("_thankYouAmount", "uint256"),
            ("_targetRepaymentDate", "uint256"),
            ("_fundingPeriod", "uint256"),
            ("_title", "string"),
            ("_description", "string"),
            ("_baseImageURI", "string"),
        ],
        [("", "address")],
        mutability="nonpayable",
    ),
]

LOAN_ABI = [
    _function("getLoanDetails", [], LOAN_DETAILS_OUTPUTS),
    _function("getSupporterTokens", [("supporter", "address")], [("", "uint256[]")]),
    _function("balanceOf", [("account", "address"), ("id", "uint256")], [("", "uint256")]),
    _function("tokenValues", [("tokenId", "uint256")], [("", "uint256")]),
    _function("tokenClaimedAmounts", [("tokenId", "uint256")], [("", "uint256")]),
    _function("tokenSupporter", [("tokenId", "uint256")], [("", "address")]),
    _function("nextTokenId", [], [("", "uint256")]),
    _function("supportLoan", [("_amount", "uint256")], [], mutability="nonpayable"),
    _function("makeRepayment", [("_amount", "uint256")], [], mutability="nonpayable"),
    _function("claimReturns", [("tokenId", "uint256")], [], mutability="nonpayable"),
]

ERC20_ABI = [
    _function("balanceOf", [("account", "address")], [("", "uint256")]),
    _function("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")],
              mutability="nonpayable"),
    _function("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")]),
]
