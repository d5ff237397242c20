import math

from typing import Optional, Union, List, Dict, Tuple, Any
from phyloselect.exceptions import NewickParseError
from phyloselect.tree import Node


# ===================================================================
# 1. METADATA PROCESSING FUNCTIONS
# ===================================================================


def split_token(token: str) -> Tuple[str, Any]:
    """
    Split a metadata token into name and value parts.
    Handles both "name=value" and "name:value" formats.

    Args:
        token: A string token in format "name=value" or "name:value"

    Returns:
        Tuple of (name, parsed_value) where parsed_value could be string, int or float
    """
    if "=" in token:
        name, value = token.split("=", 1)
    elif ":" in token:
        name, value = token.split(":", 1)
    else:
        return token, True

    for cast in (int, float):
        try:
            return name, cast(value)
        except ValueError:
            continue
    return name, value.strip("'\"")


def flush_meta_buffer(meta_buffer: List[str], stack: List[Node]) -> None:
    """
    Parse the metadata buffer and attach it to the current node's values.
    Supports NHX ("&&NHX:key=value:...") and comma separated key=value pairs.
    """
    meta_string = "".join(meta_buffer).strip()

    if meta_string.startswith("&&NHX:"):
        tokens = meta_string[6:].split(":")
    else:
        tokens = meta_string.replace(";", ",").replace(" ", ",").split(",")

    metadata: Dict[str, Any] = {}
    for token in tokens:
        if token.strip():
            name, value = split_token(token.strip())
            metadata[name] = value

    if metadata and stack:
        stack[-1].values.update(metadata)

    meta_buffer.clear()


# ===================================================================
# 2. BUFFER PROCESSING FUNCTIONS
# ===================================================================


def flush_character_buffer(buffer: List[str], stack: List[Node]) -> None:
    """
    Assign the accumulated characters as the name of the current node.
    """
    if stack and buffer:
        stack[-1].name = "".join(buffer).strip().strip("'\"")
    buffer.clear()


def flush_length_buffer(buffer: List[str], stack: List[Node]) -> None:
    """
    Assign the accumulated characters as the branch length of the current node.

    Raises:
        NewickParseError: If the buffer is not a finite number
    """
    if not stack:
        buffer.clear()
        return

    buffer_value = "".join(buffer).strip()
    try:
        parsed_number = float(buffer_value)
    except ValueError:
        raise NewickParseError(f"Invalid branch length: {buffer_value!r}")
    if math.isinf(parsed_number) or math.isnan(parsed_number):
        raise NewickParseError(f"Branch length must be finite: {buffer_value!r}")
    stack[-1].length = parsed_number
    buffer.clear()


def flush_buffer(buffer: List[str], stack: List[Node], mode: str) -> None:
    if mode == "character_reader":
        flush_character_buffer(buffer, stack)
    elif mode == "length_reader":
        flush_length_buffer(buffer, stack)


# ===================================================================
# 3. NODE STACK MANAGEMENT FUNCTIONS
# ===================================================================


def init_nodestack() -> List[Node]:
    """
    Initialize the node stack with the root node of a new tree.
    """
    return [Node(name="", length=None, depth=0)]


def create_new_node(stack: List[Node], default_length: float) -> List[Node]:
    """
    Create a child of the node on top of the stack and push it.
    """
    parent = stack[-1]
    new_node = Node(
        length=default_length,
        depth=(parent.depth + 1 if parent.depth is not None else 1),
    )
    parent.children.append(new_node)
    new_node.parent = parent
    stack.append(new_node)
    return stack


# ===================================================================
# 4. CORE PARSING FUNCTIONS
# ===================================================================


def _parse_newick(tokens: str, default_length: float) -> List[Node]:
    """
    Return a list of top-level Node trees from the token string.

    Raises:
        NewickParseError: On unbalanced parentheses or a missing tree
    """
    trees: List[Node] = []
    buffer: List[str] = []
    meta_buffer: List[str] = []
    mode: str = "character_reader"
    node_stack: List[Node] = []
    open_brackets = 0

    for char in tokens:
        if mode == "metadata_reader":
            if char == "]":
                flush_meta_buffer(meta_buffer, node_stack)
                mode = "character_reader"
            else:
                meta_buffer.append(char)
            continue

        if char in "\n\r\t":
            continue

        if not node_stack and not char.isspace() and char != ";":
            node_stack = init_nodestack()

        if char == "(":
            # The node on top of the stack becomes internal
            open_brackets += 1
            create_new_node(node_stack, default_length)
            mode = "character_reader"

        elif char == ")":
            if open_brackets == 0:
                raise NewickParseError("Unbalanced parentheses: unexpected ')'")
            flush_buffer(buffer, node_stack, mode)
            node_stack.pop()
            open_brackets -= 1
            mode = "character_reader"

        elif char == ",":
            if open_brackets == 0:
                raise NewickParseError("Unexpected ',' outside of parentheses")
            flush_buffer(buffer, node_stack, mode)
            node_stack.pop()
            create_new_node(node_stack, default_length)
            mode = "character_reader"

        elif char == ":":
            flush_buffer(buffer, node_stack, mode)
            mode = "length_reader"

        elif char == "[":
            flush_buffer(buffer, node_stack, mode)
            mode = "metadata_reader"

        elif char == ";":
            if open_brackets != 0:
                raise NewickParseError("Unbalanced parentheses: missing ')'")
            if node_stack:
                flush_buffer(buffer, node_stack, mode)
                trees.append(node_stack[0])
            node_stack = []
            buffer = []
            mode = "character_reader"

        else:
            buffer.append(char)

    if mode == "metadata_reader":
        raise NewickParseError("Unterminated metadata block")
    if open_brackets != 0:
        raise NewickParseError("Unbalanced parentheses: missing ')'")
    if node_stack:
        flush_buffer(buffer, node_stack, mode)
        trees.append(node_stack[0])
    if not trees:
        raise NewickParseError("No tree found in Newick string")
    return trees


# ===================================================================
# 5. PUBLIC API FUNCTIONS
# ===================================================================


def parse_newick(
    tokens: str,
    order: Optional[List[str]] = None,
    encoding: Optional[Dict[str, int]] = None,
    default_length: float = 1.0,
    force_list: bool = False,
) -> Union[Node, List[Node]]:
    """
    Parse a Newick string into a tree or list of trees.

    All trees of one string share a taxa encoding. Without an explicit
    `order` or `encoding` the taxa are encoded in sorted name order, so
    trees parsed separately from the same taxa get identical encodings.

    Args:
        tokens: Newick format string
        order: Optional order for taxa names
        encoding: Optional encoding mapping for taxa names
        default_length: Default branch length for nodes without explicit lengths
        force_list: Always return a list even for single trees

    Returns:
        Single Node or list of Nodes representing parsed tree(s)

    Raises:
        NewickParseError: If the string is malformed or a taxon is missing
            from the supplied encoding
    """
    trees: List[Node] = _parse_newick(tokens, default_length=default_length)

    if encoding is None:
        if order is None:
            order = sorted({name for tree in trees for name in get_linear_order(tree)})
        encoding = {name: idx for idx, name in enumerate(order)}

    for idx, tree in enumerate(trees):
        tree.list_index = idx
        try:
            tree.initialize_split_indices(encoding)
        except ValueError as e:
            raise NewickParseError(str(e)) from e
        tree.fix_child_order()

    if len(trees) == 1 and not force_list:
        return trees[0]
    return trees


def get_linear_order(tree: Node) -> List[str]:
    """
    Get the leaf names of a tree in traversal order.
    """
    leaves: List[Node] = []
    stack: List[Node] = [tree]
    while stack:
        current = stack.pop()
        if current.children:
            stack.extend(reversed(current.children))
        else:
            leaves.append(current)
    return [leaf.name for leaf in leaves if leaf.name]
