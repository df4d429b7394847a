from .models import (
    SourceLocation,
    Node,
    Expression,
    Name,
    This,
    Literal,
    PropertyAccess,
    MethodCall,
    Invocation,
    Assignment,
    BinaryOperation,
    PrefixOperation,
    NullCheck,
    IndexExpression,
    CascadeReceiver,
    Cascade,
    InstanceCreation,
    Parameter,
    Closure,
    Statement,
    Block,
    ExpressionStatement,
    LocalVariable,
    Return,
    If,
    Assert,
    ContainerKind,
    MemberKind,
    Declaration,
    MemberDecl,
    EnumValueDecl,
    ContainerDecl,
    FunctionDecl,
    VariableDecl,
    TopLevelDecl,
    SourceUnit,
)
from .protocols import MarkerPredicate, AnnotationMarker

__all__ = [
    "SourceLocation",
    "Node",
    "Expression",
    "Name",
    "This",
    "Literal",
    "PropertyAccess",
    "MethodCall",
    "Invocation",
    "Assignment",
    "BinaryOperation",
    "PrefixOperation",
    "NullCheck",
    "IndexExpression",
    "CascadeReceiver",
    "Cascade",
    "InstanceCreation",
    "Parameter",
    "Closure",
    "Statement",
    "Block",
    "ExpressionStatement",
    "LocalVariable",
    "Return",
    "If",
    "Assert",
    "ContainerKind",
    "MemberKind",
    "Declaration",
    "MemberDecl",
    "EnumValueDecl",
    "ContainerDecl",
    "FunctionDecl",
    "VariableDecl",
    "TopLevelDecl",
    "SourceUnit",
    "MarkerPredicate",
    "AnnotationMarker",
]
