# This program is public domain
# Author: Paul Kienzle
"""
Dependency calculator.
"""


def processing_order(pairs, items=None):
    """
    Order the work in a workflow.

    Given a set of items to evaluate and dependency pairs (a, b) meaning
    *a* must be evaluated before *b*, return a permutation of the items
    which satisfies the partial order.

    :Parameters:

    *pairs* : [(str, str), ...]

        Pairwise dependencies amongst items.

    *items* : [str, ...]

        Items to order, or None if we don't care about any item that is not
        mentioned in the list of pairs.  Items not mentioned in any pair are
        placed at the end in the order given.

    :Returns:

    *order* : [str, ...]

        Permutation which satisfies the partial order requirements.

    Raises *ValueError* if the pairs contain a cycle, or mention an item
    which is not in *items*.
    """
    order = _dependencies(pairs)
    if items is not None:
        items = list(items)
        unknown = set(k for pair in pairs for k in pair) - set(items)
        if unknown:
            raise ValueError("Not all dependencies are in the set: %s"
                             % ", ".join(sorted(str(k) for k in unknown)))
        rest = [k for k in items if k not in order]
    else:
        seen = set(order)
        rest = []
        for pair in pairs:
            for k in pair:
                if k not in seen:
                    seen.add(k)
                    rest.append(k)
    return order + rest


def _dependencies(pairs):
    emptyset = set()
    order = []
    pairs = [(a, b) for a, b in pairs]
    if not pairs:
        return order

    # Break pairs into left set and right set
    left, right = (set(s) for s in zip(*pairs))
    while pairs:
        # Find which items only occur on the right
        independent = right - left
        if independent == emptyset:
            cycleset = ", ".join(sorted(str(s) for s in left))
            raise ValueError("Cyclic dependencies amongst %s" % cycleset)

        # The possibly resolvable items are those that depend on the independents
        dependent = set(a for a, b in pairs if b in independent)
        pairs = [(a, b) for a, b in pairs if b not in independent]
        if not pairs:
            resolved = dependent
        else:
            left, right = (set(s) for s in zip(*pairs))
            resolved = dependent - left
        # sorted so that the order is repeatable
        order += sorted(resolved, reverse=True)
    order.reverse()
    return order


# ========= Test code ========
def _check(msg, pairs, items):
    """
    Verify that the order contains the given items, and that the order
    satisfies the partial ordering given by the pairs.
    """
    order = processing_order(pairs, items=items)
    if set(order) != set(items) or len(order) != len(items):
        raise RuntimeError("%s is missing items" % msg)
    for lo, hi in pairs:
        if order.index(lo) >= order.index(hi):
            raise RuntimeError("%s expect %s before %s in %s for %s"
                               % (msg, lo, hi, order, pairs))


def test():
    items = [str(k) for k in range(9)]

    # No dependencies
    _check("test empty", [], items)

    # No chain dependencies
    _check("test2", [("4", "1"), ("3", "2"), ("7", "6")], items)

    # Some chain dependencies
    pairs = [("4", "0"), ("0", "1"), ("1", "2"), ("7", "0"), ("3", "5")]
    _check("test1", pairs, items)

    # Cycle test
    pairs = [("1", "4"), ("4", "3"), ("4", "5"), ("5", "1")]
    try:
        processing_order(pairs, items=items)
    except ValueError:
        pass
    else:
        raise Exception("test3 expect ValueError exception for %s" % (pairs,))

    # depth tests
    k = 200
    chain = [str(i) for i in range(k + 1)]
    _check("depth-1", list(zip(chain[:-1], chain[1:])), chain)
    _check("depth-2", list(zip(chain[1:], chain[:-1])), chain)


if __name__ == "__main__":
    test()
