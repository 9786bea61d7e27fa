"""
Binding item module

Any API found in the parsed headers which we might want to pass on to
the generated bridge is stored as an Api. Everything lives in these
structures because unnecessary APIs are garbage collected later, using
the `deps` field as the edges of the graph.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .types import Namespace, TypeName


# ==============================================================================
# Conversion errors
# ==============================================================================

class ConvertError(Exception):
    """Parser output could not be turned into the binding item graph"""

    def __init__(self, message: str):
        super().__init__(message)


class NoContent(ConvertError):
    def __init__(self):
        super().__init__(
            "The header parse did not produce any content. This might be because "
            "none of the requested items for generation could be converted.")


class UnsafePODType(ConvertError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(
            "An item was requested using 'AllowPOD' which was not safe to hold "
            f"by value across the bridge. {detail}")


class UnexpectedForeignItem(ConvertError):
    def __init__(self):
        super().__init__(
            "The header parser produced an unexpected function declaration. You may "
            "have specified something in an 'Allow' directive which is not currently "
            "compatible with bridge_gen.")


class UnexpectedOuterItem(ConvertError):
    def __init__(self):
        super().__init__(
            "The header parser produced an unexpected item at the outermost scope. "
            "You may have specified something in an 'Allow' directive which is not "
            "currently compatible with bridge_gen.")


class UnexpectedItemInMod(ConvertError):
    def __init__(self):
        super().__init__(
            "The header parser produced an unexpected item in an inner namespace. "
            "You may have specified something in an 'Allow' directive which is not "
            "currently compatible with bridge_gen.")


class ComplexTypedefTarget(ConvertError):
    def __init__(self, target: str):
        self.target = target
        super().__init__(
            f"bridge_gen was unable to produce a typedef pointing to the complex type {target}.")


class UnexpectedThisType(ConvertError):
    def __init__(self):
        super().__init__("Unexpected type for 'this'")


# ==============================================================================
# Use classification
# ==============================================================================

@dataclass(frozen=True)
class Unused:
    """Not exposed at module level in the host surface"""


@dataclass(frozen=True)
class Used:
    """Exposed under its own identifier"""


@dataclass(frozen=True)
class UsedWithAlias:
    """Exposed under a different name than its identifier"""
    alias: str


Use = Union[Unused, Used, UsedWithAlias]


# ==============================================================================
# Additional C++ needs
# ==============================================================================

class NeedKind(Enum):
    FUNCTION_WRAPPER = 'function_wrapper'
    METHOD_WRAPPER = 'method_wrapper'
    DELETER = 'deleter'


@dataclass
class WrapperParam:
    """One parameter of a synthesized wrapper"""
    name: str
    type: str          # fully qualified C++ type as declared
    by_pointer: bool   # crosses the bridge as a pointer, dereferenced at the call


@dataclass
class AdditionalNeed:
    """Extra C++ code to synthesize for an item"""
    kind: NeedKind
    bridge_name: str                  # extern "C" symbol
    target: str                       # qualified callee or type
    params: list[WrapperParam] = field(default_factory=list)
    return_type: str = 'void'
    return_kind: str = 'value'        # 'void', 'value', 'reference', 'boxed'
    receiver_const: bool = False


# ==============================================================================
# Api
# ==============================================================================

@dataclass
class Api:
    """One candidate binding item"""
    ns: Namespace
    id: str
    use_stmt: Use = field(default_factory=Unused)
    deps: set[TypeName] = field(default_factory=set)
    foreign_declaration: Optional[str] = None
    bridge_declaration: Optional[str] = None
    global_items: list[str] = field(default_factory=list)
    additional_cpp: Optional[AdditionalNeed] = None
    id_for_allowlist: Optional[str] = None
    # Why the item cannot be bridged; raised only if it survives the gc
    error: Optional[ConvertError] = None

    def typename(self) -> TypeName:
        return TypeName(self.ns, self.id)

    def typename_for_allowlist(self) -> TypeName:
        """Name used to match against the allow-list

        An explicit allowlist id wins over an alias, which wins over
        the item's own identifier.
        """
        if self.id_for_allowlist is not None:
            name = self.id_for_allowlist
        elif isinstance(self.use_stmt, UsedWithAlias):
            name = self.use_stmt.alias
        else:
            name = self.id
        return TypeName(self.ns, name)

    def surface_name(self) -> Optional[str]:
        """Name in the host-facing module tree, None if not exposed there"""
        use = self.use_stmt
        if isinstance(use, UsedWithAlias):
            return use.alias
        if isinstance(use, Used):
            return self.id
        if isinstance(use, Unused):
            return None
        raise TypeError(f'unknown use classification: {use!r}')
