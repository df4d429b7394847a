import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Type

from debuggate.analysis.engines.propagation import ResolvedIndex
from debuggate.analysis.schema import Finding
from debuggate.index import ContainerRecord, LookupResult, SymbolRecord, base_type_name
from debuggate.index.operators import (
    BINARY_OPERATORS,
    BOOLEAN_OPERATORS,
    INDEX_READ,
    INDEX_WRITE,
    NON_OVERLOADABLE,
    PREFIX_OPERATORS,
    compound_operator_key,
)
from debuggate.needle import L
from debuggate.spec import (
    Assert,
    Assignment,
    BinaryOperation,
    Block,
    Cascade,
    CascadeReceiver,
    Closure,
    ContainerDecl,
    ContainerKind,
    Expression,
    ExpressionStatement,
    FunctionDecl,
    If,
    IndexExpression,
    InstanceCreation,
    Invocation,
    Literal,
    LocalVariable,
    MemberDecl,
    MethodCall,
    Name,
    Node,
    NullCheck,
    Parameter,
    PrefixOperation,
    PropertyAccess,
    Return,
    SourceLocation,
    SourceUnit,
    Statement,
    This,
    VariableDecl,
)

from .context import ContextKind, ContextStack
from .types import (
    BOOL,
    DYNAMIC,
    FUNCTION,
    AccessForm,
    ReferenceSite,
    StaticType,
    TypeKind,
)

log = logging.getLogger(__name__)


@dataclass
class ScanResult:
    unit: str
    sites: List[ReferenceSite] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)


@dataclass(frozen=True)
class _Receiver:
    type: StaticType
    cascade: bool = False
    null_aware: bool = False


@dataclass(frozen=True)
class _NameBinding:
    type: StaticType
    symbol: Optional[SymbolRecord] = None


def is_gate(condition: Expression) -> bool:
    """`assert(() { ... }())`: a zero-parameter closure invoked with no arguments."""
    return (
        isinstance(condition, Invocation)
        and isinstance(condition.function, Closure)
        and not condition.function.params
        and not condition.args
    )


class ReferenceScanner:
    """
    Resolves every access in a unit to its declared symbol.

    Only reads the completed index, so one scanner can serve several worker
    threads; all per-unit state lives in the walker.
    """

    def __init__(self, resolved: ResolvedIndex):
        self.resolved = resolved

    def scan_unit(self, unit: SourceUnit) -> ScanResult:
        if unit.path in self.resolved.failed_units:
            log.debug(f"Not scanning {unit.path}: the unit failed to index")
            return ScanResult(unit=unit.path)
        walker = _UnitWalker(self.resolved, unit.path)
        walker.walk(unit)
        return walker.result


class _UnitWalker:
    def __init__(self, resolved: ResolvedIndex, unit: str):
        self.resolved = resolved
        self.index = resolved.index
        self.lookup = resolved.lookup()
        self.result = ScanResult(unit=unit)
        self.contexts = ContextStack()

        self._fallback = SourceLocation(unit, 1, 0)
        self._scopes: List[Dict[str, StaticType]] = []
        self._cascades: List[_Receiver] = []
        self._container: Optional[ContainerRecord] = None
        self._static = False

        self._statements: Dict[Type[Statement], Callable[[Statement], None]] = {
            Block: self._visit_block,
            ExpressionStatement: self._visit_expression_statement,
            LocalVariable: self._visit_local_variable,
            Return: self._visit_return,
            If: self._visit_if,
            Assert: self._visit_assert,
        }
        self._expressions: Dict[Type[Expression], Callable[[Expression], StaticType]] = {
            Name: self._eval_name,
            This: self._eval_this,
            Literal: self._eval_literal,
            PropertyAccess: self._eval_property,
            MethodCall: self._eval_method_call,
            Invocation: self._eval_invocation,
            Assignment: self._eval_assignment,
            BinaryOperation: self._eval_binary,
            PrefixOperation: self._eval_prefix,
            NullCheck: self._eval_null_check,
            IndexExpression: self._eval_index,
            Cascade: self._eval_cascade,
            CascadeReceiver: self._eval_cascade_receiver,
            InstanceCreation: self._eval_instance_creation,
            Closure: self._eval_closure,
        }

    # --- Declarations ---

    def walk(self, unit: SourceUnit) -> None:
        for decl in unit.declarations:
            self._fallback = decl.location or self._fallback
            if isinstance(decl, FunctionDecl):
                self._function_body(decl.params, decl.body)
            elif isinstance(decl, VariableDecl):
                if decl.initializer is not None:
                    with self.contexts.enter(ContextKind.ORDINARY):
                        self._eval(decl.initializer)
            elif isinstance(decl, ContainerDecl):
                self._walk_container(decl)

    def _walk_container(self, decl: ContainerDecl) -> None:
        container = self.index.find_container(decl.name)
        if container is None or container.unit != self.result.unit:
            return
        self._container = container
        try:
            for member in decl.members:
                self._walk_member(member)
        finally:
            self._container = None
            self._static = False

    def _walk_member(self, member: MemberDecl) -> None:
        self._fallback = member.location or self._fallback
        self._static = member.is_static
        if member.initializer is not None:
            with self.contexts.enter(ContextKind.ORDINARY):
                self._eval(member.initializer)
        if member.body is not None:
            self._function_body(member.params, member.body)

    def _function_body(self, params: Sequence[Parameter], body: Block) -> None:
        with self.contexts.enter(ContextKind.ORDINARY), self._scope(params):
            self._visit_statements(body.statements)

    # --- Helpers ---

    @contextmanager
    def _scope(self, params: Sequence[Parameter] = ()) -> Iterator[None]:
        self._scopes.append({p.name: self._resolve_type(p.type) for p in params})
        try:
            yield
        finally:
            self._scopes.pop()

    def _loc(self, node: Node) -> SourceLocation:
        return node.location or self._fallback

    def _resolve_type(self, type_name: Optional[str]) -> StaticType:
        if not type_name:
            return DYNAMIC
        if type_name == "Function" or "Function(" in type_name:
            return FUNCTION
        name = base_type_name(type_name)
        if name in ("dynamic", "var", "final"):
            return DYNAMIC
        container = self.index.find_container(name)
        if container is not None:
            return StaticType(TypeKind.INSTANCE, container.name, container.id)
        if self.index.is_external(name):
            return StaticType(TypeKind.EXTERNAL, name)
        return StaticType(TypeKind.UNKNOWN, name)

    def _value_type(self, symbol: SymbolRecord) -> StaticType:
        """Static type of reading the symbol as a value (tear-offs are functions)."""
        if symbol.kind.is_callable:
            return FUNCTION
        return self._resolve_type(symbol.type_name)

    def _input_error(self, kind, node: Node, symbol: str, **context) -> None:
        self.result.findings.append(
            Finding(kind=kind, location=self._loc(node), symbol=symbol, context=context)
        )

    def _unresolved(self, name: str, node: Node) -> None:
        self._input_error(L.finding.input_error.unresolved_identifier, node, name)

    def _failed(self, result: LookupResult, name: str, node: Node) -> None:
        self._input_error(
            L.finding.input_error.failed_container,
            node,
            name,
            container=result.failed_container.name,
        )

    def _record(
        self,
        symbol: SymbolRecord,
        form: AccessForm,
        node: Node,
        compound: bool = False,
        cascade: bool = False,
        null_aware: bool = False,
    ) -> None:
        if symbol.unit in self.resolved.failed_units:
            self._input_error(
                L.finding.input_error.failed_container,
                node,
                symbol.qualified_name,
                container=symbol.unit,
            )
            return
        self.result.sites.append(
            ReferenceSite(
                location=self._loc(node),
                symbol_id=symbol.id,
                form=form,
                compound=compound,
                cascade=cascade,
                null_aware=null_aware,
                contexts=self.contexts.snapshot(),
            )
        )

    def _use(self, result: LookupResult, name: str, node: Node) -> Optional[SymbolRecord]:
        if result.failed_container is not None:
            self._failed(result, name, node)
            return None
        if not result.found:
            return None
        return self.index.symbol(result.symbol_id)

    def _resolve_member(
        self, receiver: StaticType, key: str, node: Node
    ) -> Optional[SymbolRecord]:
        if receiver.kind == TypeKind.DYNAMIC:
            return None
        if receiver.kind == TypeKind.UNKNOWN:
            self._unresolved(receiver.name, node)
            return None

        if receiver.kind == TypeKind.EXTERNAL:
            result = self.lookup.external_extension_member(receiver.name, key)
        elif receiver.kind == TypeKind.TYPE_LITERAL:
            if receiver.container_id is None:
                return None
            result = self.lookup.static_member(receiver.container_id, key)
        else:
            result = self.lookup.instance_member(receiver.container_id, key)
            if not result.found and result.failed_container is None:
                result = self.lookup.extension_member(receiver.container_id, key)

        symbol = self._use(result, f"{receiver.name}.{key}", node)
        if symbol is None and result.failed_container is None:
            log.debug(f"No declared member '{key}' on {receiver.name}")
        return symbol

    def _operator(
        self,
        receiver: StaticType,
        key: str,
        node: Node,
        compound: bool = False,
        cascade: bool = False,
        null_aware: bool = False,
    ) -> StaticType:
        symbol = self._resolve_member(receiver, key, node)
        if symbol is None:
            return receiver if receiver.kind == TypeKind.EXTERNAL else DYNAMIC
        self._record(symbol, AccessForm.OPERATOR, node, compound, cascade, null_aware)
        return self._resolve_type(symbol.type_name)

    def _resolve_in_container(self, key: str) -> LookupResult:
        container = self._container
        static_id = container.static_members.get(key)
        if static_id is not None:
            return self.lookup.static_member(container.id, key)
        if self._static:
            return LookupResult()

        if container.kind == ContainerKind.EXTENSION:
            own = container.members.get(key)
            if own is not None:
                return LookupResult(symbol_id=own)
            target = self._resolve_type(container.extension_target)
            if target.kind == TypeKind.INSTANCE:
                result = self.lookup.instance_member(target.container_id, key)
                if result.found or result.failed_container:
                    return result
                return self.lookup.extension_member(target.container_id, key)
            return LookupResult()

        result = self.lookup.instance_member(container.id, key)
        if result.found or result.failed_container:
            return result
        return self.lookup.extension_member(container.id, key)

    def _bind_name(self, name: str, key: str, node: Node) -> Optional[_NameBinding]:
        """Resolves an identifier: locals, enclosing members, top-level, then types."""
        for scope in reversed(self._scopes):
            if name in scope:
                return _NameBinding(scope[name])

        if self._container is not None:
            result = self._resolve_in_container(key)
            if result.failed_container is not None:
                self._failed(result, name, node)
                return _NameBinding(DYNAMIC)
            if result.found:
                symbol = self.index.symbol(result.symbol_id)
                return _NameBinding(self._value_type(symbol), symbol)

        symbol_id = self.index.top_level.get(key)
        if symbol_id is not None:
            symbol = self.index.symbol(symbol_id)
            return _NameBinding(self._value_type(symbol), symbol)

        container = self.index.find_container(name)
        if container is not None:
            return _NameBinding(
                StaticType(TypeKind.TYPE_LITERAL, container.name, container.id),
                self.index.symbol(container.symbol_id),
            )
        if self.index.is_external(name):
            return _NameBinding(StaticType(TypeKind.TYPE_LITERAL, name))

        self._unresolved(name, node)
        return None

    def _receiver(self, target: Expression) -> _Receiver:
        if isinstance(target, CascadeReceiver):
            if not self._cascades:
                return _Receiver(DYNAMIC)
            top = self._cascades[-1]
            return _Receiver(top.type, cascade=True, null_aware=top.null_aware)
        if isinstance(target, Name):
            binding = self._bind_name(target.id, target.id, target)
            if binding is None:
                return _Receiver(DYNAMIC)
            if binding.type.kind != TypeKind.TYPE_LITERAL:
                self._use_binding(binding, target)
            # A type name in receiver position is a static access, not a use of the type.
            return _Receiver(binding.type)
        return _Receiver(self._eval(target))

    def _use_binding(self, binding: _NameBinding, node: Node) -> None:
        if binding.symbol is None:
            return
        form = AccessForm.CALL if binding.symbol.kind.is_callable else AccessForm.READ
        self._record(binding.symbol, form, node)

    # --- Statements ---

    def _visit_statements(self, statements: Sequence[Statement]) -> None:
        for statement in statements:
            self._visit(statement)

    def _visit(self, statement: Statement) -> None:
        handler = self._statements.get(type(statement))
        if handler is None:
            raise TypeError(f"Unsupported statement node: {type(statement).__name__}")
        handler(statement)

    def _visit_block(self, node: Block) -> None:
        with self._scope():
            self._visit_statements(node.statements)

    def _visit_expression_statement(self, node: ExpressionStatement) -> None:
        self._eval(node.expression)

    def _visit_local_variable(self, node: LocalVariable) -> None:
        inferred = self._eval(node.initializer) if node.initializer is not None else DYNAMIC
        declared = self._resolve_type(node.type) if node.type else inferred
        self._scopes[-1][node.name] = declared

    def _visit_return(self, node: Return) -> None:
        if node.value is not None:
            self._eval(node.value)

    def _visit_if(self, node: If) -> None:
        self._eval(node.condition)
        self._visit_block(node.then)
        if node.otherwise is not None:
            self._visit_block(node.otherwise)

    def _visit_assert(self, node: Assert) -> None:
        if is_gate(node.condition):
            closure = node.condition.function
            with self.contexts.enter(ContextKind.ASSERT_GATED), self._scope():
                self._visit_statements(closure.body.statements)
        else:
            self._eval(node.condition)
        if node.message is not None:
            self._eval(node.message)

    # --- Expressions ---

    def _eval(self, node: Expression) -> StaticType:
        handler = self._expressions.get(type(node))
        if handler is None:
            raise TypeError(f"Unsupported expression node: {type(node).__name__}")
        return handler(node)

    def _eval_name(self, node: Name) -> StaticType:
        binding = self._bind_name(node.id, node.id, node)
        if binding is None:
            return DYNAMIC
        self._use_binding(binding, node)
        return binding.type

    def _eval_this(self, node: This) -> StaticType:
        if self._container is None:
            return DYNAMIC
        if self._container.kind == ContainerKind.EXTENSION:
            return self._resolve_type(self._container.extension_target)
        return StaticType(TypeKind.INSTANCE, self._container.name, self._container.id)

    def _eval_literal(self, node: Literal) -> StaticType:
        return self._resolve_type(node.type)

    def _eval_property(self, node: PropertyAccess) -> StaticType:
        receiver = self._receiver(node.target)
        symbol = self._resolve_member(receiver.type, node.name, node)
        if symbol is None:
            return DYNAMIC
        form = AccessForm.CALL if symbol.kind.is_callable else AccessForm.READ
        self._record(
            symbol,
            form,
            node,
            cascade=receiver.cascade,
            null_aware=node.null_aware or receiver.null_aware,
        )
        return self._value_type(symbol)

    def _eval_method_call(self, node: MethodCall) -> StaticType:
        result = DYNAMIC
        if node.target is None:
            binding = self._bind_name(node.name, node.name, node)
            if binding is not None and binding.symbol is not None:
                self._record(binding.symbol, AccessForm.CALL, node)
                if binding.type.kind == TypeKind.TYPE_LITERAL:
                    result = StaticType(
                        TypeKind.INSTANCE, binding.type.name, binding.type.container_id
                    )
                else:
                    result = self._resolve_type(binding.symbol.type_name)
        else:
            receiver = self._receiver(node.target)
            symbol = self._resolve_member(receiver.type, node.name, node)
            if symbol is not None:
                self._record(
                    symbol,
                    AccessForm.CALL,
                    node,
                    cascade=receiver.cascade,
                    null_aware=node.null_aware or receiver.null_aware,
                )
                result = self._resolve_type(symbol.type_name)
        for arg in node.args:
            self._eval(arg)
        return result

    def _eval_invocation(self, node: Invocation) -> StaticType:
        self._eval(node.function)
        for arg in node.args:
            self._eval(arg)
        return DYNAMIC

    def _eval_assignment(self, node: Assignment) -> StaticType:
        value_type = self._eval(node.value)
        target = node.target
        compound = node.is_compound
        operator_key = compound_operator_key(node.operator)

        if isinstance(target, Name):
            return self._assign_name(target, compound, operator_key, value_type)

        if isinstance(target, PropertyAccess):
            receiver = self._receiver(target.target)
            flags = dict(
                compound=compound,
                cascade=receiver.cascade,
                null_aware=target.null_aware or receiver.null_aware,
            )
            result_type = value_type
            if compound:
                getter = self._resolve_member(receiver.type, target.name, target)
                if getter is not None:
                    self._record(getter, AccessForm.READ, target, **flags)
                    if operator_key:
                        result_type = self._operator(
                            self._value_type(getter), operator_key, node, **flags
                        )
            setter = self._resolve_member(receiver.type, f"{target.name}=", target)
            if setter is not None:
                self._record(setter, AccessForm.WRITE, target, **flags)
            return result_type

        if isinstance(target, IndexExpression):
            receiver = self._receiver(target.target)
            self._eval(target.index)
            flags = dict(
                compound=compound,
                cascade=receiver.cascade,
                null_aware=target.null_aware or receiver.null_aware,
            )
            result_type = value_type
            if compound:
                element = self._operator(receiver.type, INDEX_READ, target, **flags)
                if operator_key:
                    result_type = self._operator(element, operator_key, node, **flags)
            self._operator(receiver.type, INDEX_WRITE, target, **flags)
            return result_type

        self._eval(target)
        return value_type

    def _assign_name(
        self,
        target: Name,
        compound: bool,
        operator_key: Optional[str],
        value_type: StaticType,
    ) -> StaticType:
        for scope in reversed(self._scopes):
            if target.id in scope:
                if compound and operator_key:
                    return self._operator(scope[target.id], operator_key, target)
                return value_type

        result_type = value_type
        if compound:
            getter = self._bind_name(target.id, target.id, target)
            if getter is None:
                return DYNAMIC
            if getter.symbol is not None:
                self._record(getter.symbol, AccessForm.READ, target, compound=True)
            if operator_key:
                result_type = self._operator(
                    getter.type, operator_key, target, compound=True
                )
            setter = self._bind_name(target.id, f"{target.id}=", target)
        else:
            setter = self._bind_name(target.id, f"{target.id}=", target)
        if setter is not None and setter.symbol is not None:
            self._record(setter.symbol, AccessForm.WRITE, target, compound=compound)
        return result_type

    def _eval_binary(self, node: BinaryOperation) -> StaticType:
        left = self._eval(node.left)
        right = self._eval(node.right)
        if node.operator in NON_OVERLOADABLE:
            if node.operator == "??":
                return left if left.kind != TypeKind.DYNAMIC else right
            return BOOL
        key = BINARY_OPERATORS.get(node.operator)
        if key is None:
            return DYNAMIC
        result = self._operator(left, key, node)
        return BOOL if node.operator in BOOLEAN_OPERATORS else result

    def _eval_prefix(self, node: PrefixOperation) -> StaticType:
        operand = self._eval(node.operand)
        if node.operator == "!":
            return BOOL
        key = PREFIX_OPERATORS.get(node.operator)
        if key is None:
            return operand
        return self._operator(operand, key, node)

    def _eval_null_check(self, node: NullCheck) -> StaticType:
        return self._eval(node.operand)

    def _eval_index(self, node: IndexExpression) -> StaticType:
        receiver = self._receiver(node.target)
        self._eval(node.index)
        return self._operator(
            receiver.type,
            INDEX_READ,
            node,
            cascade=receiver.cascade,
            null_aware=node.null_aware or receiver.null_aware,
        )

    def _eval_cascade(self, node: Cascade) -> StaticType:
        target_type = self._eval(node.target)
        self._cascades.append(_Receiver(target_type, True, node.null_aware))
        try:
            for section in node.sections:
                self._eval(section)
        finally:
            self._cascades.pop()
        return target_type

    def _eval_cascade_receiver(self, node: CascadeReceiver) -> StaticType:
        return self._cascades[-1].type if self._cascades else DYNAMIC

    def _eval_instance_creation(self, node: InstanceCreation) -> StaticType:
        created = self._resolve_type(node.type_name)
        if created.kind == TypeKind.UNKNOWN:
            self._unresolved(created.name, node)
        elif created.kind == TypeKind.INSTANCE:
            container = self.index.container(created.container_id)
            self._record(self.index.symbol(container.symbol_id), AccessForm.CALL, node)
        for arg in node.args:
            self._eval(arg)
        return created

    def _eval_closure(self, node: Closure) -> StaticType:
        with self.contexts.enter(ContextKind.ORDINARY), self._scope(node.params):
            self._visit_statements(node.body.statements)
        return FUNCTION

