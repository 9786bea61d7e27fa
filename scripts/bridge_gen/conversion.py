"""
Conversion module

Turns header parser output (IR) into the binding item graph: one Api
per candidate declaration, with dependency edges keyed by TypeName.
"""

import logging
from typing import Iterable

from .api import (
    Api, AdditionalNeed, NeedKind, WrapperParam, ConvertError,
    Used, UsedWithAlias, Unused,
    ComplexTypedefTarget, UnexpectedForeignItem, UnexpectedItemInMod,
    UnexpectedOuterItem, UnexpectedThisType, UnsafePODType,
)
from .codegen import (
    bridge_symbol, join_params, pointer_to, value_type, strip_const,
    is_reference, is_pointer, is_func_ptr, is_array_type, is_template_type,
)
from .ir import (
    IR, Decl, FuncInfo, MethodInfo, StructInfo, EnumInfo, TypedefInfo, UnknownDecl,
)
from .types import (
    Namespace, TypeName,
    collect_type_names, iter_type_identifiers, qualify_type, resolve_type_name,
)

logger = logging.getLogger(__name__)


class BridgeConverter:
    """Builds Apis from IR

    Args:
        pod_requests: types requested to cross the bridge by value
    """

    def __init__(self, pod_requests: Iterable[TypeName] = ()):
        self.pod_requests = set(pod_requests)
        self._known: set[TypeName] = set()
        self._structs: dict[TypeName, StructInfo] = {}
        self._taken: set[TypeName] = set()
        self._issued: set[TypeName] = set()

    def convert(self, ir: IR) -> list[Api]:
        """Convert every declaration

        A declaration that cannot be bridged still becomes an Api, with
        the ConvertError recorded in `error`, so that it only fails the
        run when something requested depends on it. Unsafe POD requests
        raise immediately.
        """
        self._collect_names(ir.decls)
        for tn in sorted(self.pod_requests & self._structs.keys(), key=str):
            self._check_pod(tn, [])

        apis = []
        for decl in ir.decls:
            try:
                apis.append(self._convert_decl(decl))
            except ConvertError as e:
                logger.debug('cannot bridge %s: %s', decl.name, e)
                apis.append(self._rejected(decl, e))
        logger.debug('converted %d declarations into apis', len(apis))
        return apis

    def _collect_names(self, decls: list[Decl]):
        """First pass: every type name is known before any edge is resolved"""
        self._known.clear()
        self._structs.clear()
        self._taken.clear()
        self._issued.clear()
        for decl in decls:
            if isinstance(decl, MethodInfo):
                self._taken.add(TypeName(decl.ns, f'{decl.parent}_{decl.name}'))
            elif isinstance(decl, FuncInfo):
                self._taken.add(TypeName(decl.ns, decl.name))
            elif isinstance(decl, StructInfo):
                tn = TypeName(decl.ns, decl.name)
                self._structs[tn] = decl
                self._known.add(tn)
            elif isinstance(decl, (EnumInfo, TypedefInfo)):
                self._known.add(TypeName(decl.ns, decl.name))

    def _convert_decl(self, decl: Decl) -> Api:
        if isinstance(decl, UnknownDecl):
            if decl.ns.is_root:
                raise UnexpectedOuterItem()
            raise UnexpectedItemInMod()
        elif isinstance(decl, MethodInfo):
            return self._convert_method(decl)
        elif isinstance(decl, FuncInfo):
            return self._convert_func(decl)
        elif isinstance(decl, StructInfo):
            return self._convert_struct(decl)
        elif isinstance(decl, EnumInfo):
            return self._convert_enum(decl)
        elif isinstance(decl, TypedefInfo):
            return self._convert_typedef(decl)
        raise UnexpectedOuterItem()

    def _rejected(self, decl: Decl, err: ConvertError) -> Api:
        """Placeholder carrying `err`, keyed the way the converted item would be"""
        if isinstance(decl, MethodInfo):
            return Api(
                ns=decl.ns,
                id=self._next_id(decl.ns, f'{decl.parent}_{decl.name}'),
                id_for_allowlist=decl.parent or None,
                error=err,
            )
        if isinstance(decl, FuncInfo):
            ident = self._next_id(decl.ns, decl.name)
            use = Used() if ident == decl.name else UsedWithAlias(decl.name)
            return Api(ns=decl.ns, id=ident, use_stmt=use, error=err)
        return Api(ns=decl.ns, id=decl.name, use_stmt=Used(), error=err)

    # ── POD safety ──────────────────────────────────────────────────────────

    def _check_pod(self, tn: TypeName, stack: list[TypeName]):
        """Raise UnsafePODType unless `tn` can be held by value"""
        struct = self._structs[tn]
        if not struct.is_trivial:
            raise UnsafePODType(f'{tn} has a non-trivial copy, move or destructor.')
        stack = stack + [tn]
        for f in struct.fields:
            if is_pointer(f.type) or is_func_ptr(f.type):
                continue
            if is_template_type(f.type):
                raise UnsafePODType(f'{tn} field {f.name} has type {f.type} which is not POD.')
            for spelling in iter_type_identifiers(f.type):
                field_tn = resolve_type_name(spelling, struct.ns, self._known)
                if field_tn is None:
                    raise UnsafePODType(f'{tn} field {f.name} has type {f.type} which is not POD.')
                if field_tn in self._structs and field_tn not in stack:
                    self._check_pod(field_tn, stack)

    def _is_opaque_value(self, qualified_type: str) -> bool:
        """By-value use of a struct that was not requested as POD"""
        if is_pointer(qualified_type) or is_reference(qualified_type):
            return False
        base = value_type(qualified_type)
        if not base.startswith('::'):
            return False
        tn = TypeName.from_cpp(base)
        return tn in self._structs and tn not in self.pod_requests

    # ── Functions ───────────────────────────────────────────────────────────

    def _next_id(self, ns: Namespace, name: str) -> str:
        """First use keeps `name`; later overloads take the first free numeric suffix

        A suffixed id never matches another declared function or method
        id in the namespace, so bridge symbols stay unique.
        """
        ident, n = name, 0
        while TypeName(ns, ident) in self._issued or (n and TypeName(ns, ident) in self._taken):
            n += 1
            ident = f'{name}{n}'
        self._issued.add(TypeName(ns, ident))
        return ident

    def _wrap_params(self, func: FuncInfo) -> tuple[list[WrapperParam], set[TypeName]]:
        params = []
        deps: set[TypeName] = set()
        for p in func.params:
            qtype, pdeps = qualify_type(p.type, func.ns, self._known)
            deps |= pdeps
            by_pointer = is_reference(qtype) or self._is_opaque_value(qtype)
            params.append(WrapperParam(name=p.name, type=qtype, by_pointer=by_pointer))
        return params, deps

    def _wrap_return(self, func: FuncInfo) -> tuple[str, str, str, set[TypeName]]:
        """Returns (qualified type, return kind, bridge type, deps)"""
        qtype, deps = qualify_type(func.return_type, func.ns, self._known)
        if qtype == 'void':
            return qtype, 'void', 'void', deps
        if is_reference(qtype):
            return qtype, 'reference', pointer_to(qtype), deps
        if self._is_opaque_value(qtype):
            return qtype, 'boxed', value_type(qtype) + ' *', deps
        return qtype, 'value', qtype, deps

    @staticmethod
    def _bridge_param_type(param: WrapperParam) -> str:
        if not param.by_pointer:
            return param.type
        if is_reference(param.type):
            return pointer_to(param.type)
        return 'const ' + pointer_to(strip_const(param.type))

    def _convert_func(self, func: FuncInfo) -> Api:
        if not func.is_signature or func.is_variadic:
            raise UnexpectedForeignItem()
        ident = self._next_id(func.ns, func.name)
        use = Used() if ident == func.name else UsedWithAlias(func.name)

        params, deps = self._wrap_params(func)
        ret, ret_kind, bridge_ret, ret_deps = self._wrap_return(func)
        deps |= ret_deps

        tn = TypeName(func.ns, ident)
        symbol = bridge_symbol(tn.to_c_name())
        bridge_params = [(self._bridge_param_type(p), p.name) for p in params]
        native_args = ', '.join(p.type for p in params)

        return Api(
            ns=func.ns,
            id=ident,
            use_stmt=use,
            deps=deps,
            foreign_declaration=f'{ret} {TypeName(func.ns, func.name).qualified()}({native_args})',
            bridge_declaration=f'{bridge_ret} {symbol}({join_params(bridge_params)});',
            additional_cpp=AdditionalNeed(
                kind=NeedKind.FUNCTION_WRAPPER,
                bridge_name=symbol,
                target=TypeName(func.ns, func.name).qualified(),
                params=params,
                return_type=ret,
                return_kind=ret_kind,
            ),
        )

    def _convert_method(self, method: MethodInfo) -> Api:
        parent = TypeName(method.ns, method.parent)
        if not method.parent or parent not in self._structs:
            raise UnexpectedThisType()
        if not method.is_signature or method.is_variadic:
            raise UnexpectedForeignItem()
        ident = self._next_id(method.ns, f'{method.parent}_{method.name}')

        params, deps = self._wrap_params(method)
        ret, ret_kind, bridge_ret, ret_deps = self._wrap_return(method)
        deps |= ret_deps
        deps.add(parent)

        symbol = bridge_symbol(TypeName(method.ns, ident).to_c_name())
        bridge_params = [(self._bridge_param_type(p), p.name) for p in params]
        if method.is_static:
            kind = NeedKind.FUNCTION_WRAPPER
            target = f'{parent.qualified()}::{method.name}'
        else:
            kind = NeedKind.METHOD_WRAPPER
            target = method.name
            receiver = f'const {parent.qualified()} *' if method.is_const else f'{parent.qualified()} *'
            bridge_params.insert(0, (receiver, 'self'))
        native_args = ', '.join(p.type for p in params)
        suffix = ' const' if method.is_const else ''

        return Api(
            ns=method.ns,
            id=ident,
            use_stmt=Unused(),
            deps=deps,
            foreign_declaration=f'{ret} {parent.qualified()}::{method.name}({native_args}){suffix}',
            bridge_declaration=f'{bridge_ret} {symbol}({join_params(bridge_params)});',
            additional_cpp=AdditionalNeed(
                kind=kind,
                bridge_name=symbol,
                target=target,
                params=params,
                return_type=ret,
                return_kind=ret_kind,
                receiver_const=method.is_const,
            ),
            id_for_allowlist=method.parent,
        )

    # ── Types ───────────────────────────────────────────────────────────────

    def _convert_struct(self, struct: StructInfo) -> Api:
        tn = TypeName(struct.ns, struct.name)
        q = tn.qualified()
        api = Api(
            ns=struct.ns,
            id=struct.name,
            use_stmt=Used(),
            foreign_declaration=f'struct {q}',
            global_items=[f'typedef {q} {bridge_symbol(tn.to_c_name())};'],
        )
        if tn in self.pod_requests:
            api.deps = collect_type_names([f.type for f in struct.fields], struct.ns, self._known)
            api.deps.discard(tn)
            api.global_items.append(
                f'static_assert(std::is_trivially_copyable<{q}>::value, '
                f'"{tn} must be trivially copyable");')
        else:
            symbol = bridge_symbol(tn.to_c_name() + '_delete')
            api.bridge_declaration = f'void {symbol}({q} *obj);'
            api.additional_cpp = AdditionalNeed(
                kind=NeedKind.DELETER,
                bridge_name=symbol,
                target=q,
            )
        return api

    def _convert_enum(self, enum: EnumInfo) -> Api:
        tn = TypeName(enum.ns, enum.name)
        return Api(
            ns=enum.ns,
            id=enum.name,
            use_stmt=Used(),
            foreign_declaration=f'enum {tn.qualified()}',
            global_items=[f'typedef {tn.qualified()} {bridge_symbol(tn.to_c_name())};'],
        )

    def _convert_typedef(self, typedef: TypedefInfo) -> Api:
        target = typedef.type
        if is_func_ptr(target) or is_array_type(target) or is_template_type(target) or '(' in target:
            raise ComplexTypedefTarget(target)
        qtarget, deps = qualify_type(target, typedef.ns, self._known)
        tn = TypeName(typedef.ns, typedef.name)
        deps.discard(tn)
        return Api(
            ns=typedef.ns,
            id=typedef.name,
            use_stmt=Used(),
            deps=deps,
            global_items=[f'typedef {qtarget} {bridge_symbol(tn.to_c_name())};'],
        )


def raise_retained_errors(apis: list[Api]) -> list[Api]:
    """Raise the first recorded ConvertError among `apis`, else return them"""
    for api in apis:
        if api.error is not None:
            raise api.error
    return apis
