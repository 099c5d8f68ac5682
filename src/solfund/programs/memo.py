"""
Memo Program instructions.

A memo carries arbitrary UTF-8 text in the instruction data and, when it
lists no accounts, requires no extra signers.
"""

from typing import Union

from ..core.transactions import Instruction


MEMO_PROGRAM_ID = "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr"


def create_memo_instruction(memo: Union[str, bytes]) -> Instruction:
    """Create a memo instruction with no target accounts."""
    data = memo.encode('utf-8') if isinstance(memo, str) else bytes(memo)
    return Instruction(program_id=MEMO_PROGRAM_ID, accounts=[], data=data)
