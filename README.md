# chainoracle

`chainoracle` is the state machine of an oracle that validators run.
Validators, or addresses they have delegated to, submit *claims* about
off-chain data. Each claim is stored as a vote in a *round* for its claim
type. The votes are weighted by each validator's consensus power and
tallied against a threshold set for each claim type.

A claim type can also use commit and reveal. A validator first sends a
*prevote*: the SHA-256 hash of `"salt:CLAIMHASH:signer"`. It reveals the
claim, with the same salt, in a later message.

State lives in an in-memory `KVStore` that a `Context` carries. Validator
power comes from any object that has the two methods of the
`StakingKeeper` protocol.

## Install

```
pip install chainoracle
pip install "chainoracle[test]"   # adds pytest for the test suite
```

The package has no dependencies outside the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `chainoracle.keys` | `AccAddress` (bytes that print as a `cosmos1…` bech32 string), `bech32_encode` / `bech32_decode`, store key prefixes and builders (`get_round_key`, `round_prefix`, `get_del_val_key`, `get_val_del_key`, `get_claim_prevote_key`, `key_prefix`) |
| `chainoracle.errors` | `OracleError` and its subclasses (`InvalidClaimError`, `NoClaimExistsError`, `NoClaimTypeExistsError`, `NoPrevoteError`, `IncorrectClaimRoundError`, `InvalidAddressError`, `UnknownRequestError`, `NoValidatorFoundError`, `InvalidArgumentError`, `NotFoundError`) and the event attribute names |
| `chainoracle.params` | `ClaimParams`, `Params`, `default_params()`, `validate_claim_params()` |
| `chainoracle.claims` | the abstract `Claim`, the sample `TestClaim`, `register_claim_type`, `encode_claim` / `decode_claim` |
| `chainoracle.records` | `Vote`, `Round` (with `to_bytes` / `from_bytes`), `RoundResult`, `ClaimVoteResult`, `new_vote()`, `vote_hash()` |
| `chainoracle.messages` | `MsgDelegate`, `MsgPrevote`, `MsgVote` and `new_msg_delegate`, `new_msg_prevote`, `new_msg_vote` |
| `chainoracle.genesis_state` | `GenesisState`, `default_genesis()`, `new_genesis_state()` |
| `chainoracle.keeper` | `KVStore`, `Context`, `Event`, `EventManager`, the `StakingKeeper` protocol, `tokens_to_consensus_power`, `Keeper` |
| `chainoracle.msg_server` | `MsgServer` (`vote`, `delegate`, `prevote`), `new_handler()`, and the `Result` and response classes |
| `chainoracle.querier` | `Querier`: paginated `all_claims` / `all_rounds` (`PageRequest`, `PageResponse`, `ClaimsPage`, `RoundsPage`) and lookups for params, a claim, a round, pending rounds, the last finalized round and delegation addresses |
| `chainoracle.genesis` | `init_genesis()` and `export_genesis()` |

## Example

```python
from dataclasses import dataclass

from chainoracle.claims import TestClaim
from chainoracle.genesis import export_genesis
from chainoracle.keeper import Context, Keeper
from chainoracle.keys import AccAddress
from chainoracle.messages import new_msg_vote
from chainoracle.msg_server import new_handler
from chainoracle.params import default_params


@dataclass
class Validator:
    power: int

    def is_bonded(self):
        return True

    def is_jailed(self):
        return False

    def consensus_power(self):
        return self.power


class Staking:
    def __init__(self, validators):
        self.validators = validators

    def validator(self, ctx, address):
        return self.validators.get(bytes(address))

    def total_bonded_tokens(self, ctx):
        # one unit of consensus power is 10**6 tokens
        return sum(v.power for v in self.validators.values()) * 10**6


val0, val1, val2 = (AccAddress(bytes([i]) * 20) for i in (1, 2, 3))
staking = Staking({val0: Validator(10), val1: Validator(10), val2: Validator(10)})

keeper = Keeper(staking_keeper=staking)
ctx = Context(block_height=1)
keeper.set_params(ctx, default_params())

claim = TestClaim(block_height=99, content="test", claim_type="test")
keeper.create_vote(ctx, claim, val0)
keeper.create_vote(ctx, claim, val1)

result = keeper.tally_votes(ctx, "test", claim.round_id())
# 20 of 30 power is above the 50% threshold
assert result is not None and result.vote_power == 20 and result.total_power == 30
keeper.finalize_round(ctx, "test", claim.round_id())

handle = new_handler(keeper)
next_claim = TestClaim(block_height=100, content="test", claim_type="test")
outcome = handle(ctx, new_msg_vote(val2, next_claim, ""))
assert outcome.data.hash == next_claim.hash()

state = export_genesis(ctx, keeper)
```

## Behaviour worth knowing

* `Keeper.set_params` checks the claim params first. A vote threshold
  must be above 0.33 and at most 1, and the vote period must be positive.
  Otherwise it raises `ValueError`.
* `default_params()` registers two claim types. `"test"` has vote period
  1, threshold 0.50 and no prevote. `"prevoteTest"` has vote period 3,
  threshold 0.50 and a prevote.
* The handler that `new_handler` returns gives each message a fresh
  `EventManager`. It returns a `Result` that holds the response and the
  emitted events. A rejected message raises an `OracleError` subclass.
  For example, `NoValidatorFoundError` is raised when the signer, or the
  validator it is a delegate for, is not a validator. `NoClaimTypeExistsError`
  is raised for an unregistered claim type, `IncorrectClaimRoundError` for
  a round at or below the last finalized one, and `NoPrevoteError` for a
  reveal without its prevote. A signer address that does not parse raises
  `ValueError`. An unknown message type raises `UnknownRequestError`.
* A validator that delegates to its own address removes its delegation.
* `Keeper.get_last_finalized_round` reads a single store entry that all
  claim types share.
* `Keeper.tally_votes` raises `LookupError` when the round does not exist.
  It returns `None` when no bonded, unjailed vote clears the threshold.
* `Querier` methods raise `InvalidArgumentError` for missing arguments and
  `NotFoundError` for absent records. A page with limit 0 returns up to
  100 entries and counts the total.

## What it does not do

The package is the state logic only. It has no command-line tool, no
off-chain worker that watches blocks and submits claims, and no network
or query server. The store is in memory, and nothing is written to disk
unless you save a `GenesisState` from `export_genesis` yourself. There is
no real staking module: you supply validators and bonded tokens through
a `StakingKeeper` object.