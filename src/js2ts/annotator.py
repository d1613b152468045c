"""Annotation pass: attaches inferred types to declarations, parameters, returns and members."""

import logging
from dataclasses import dataclass, fields, is_dataclass, replace

from .ast import (
  Program,
  Property,
  CallExpr,
  MethodDef,
  Identifier,
  ObjectExpr,
  ClassProperty,
  FunctionDecl,
  FunctionExpr,
  StringLiteral,
  ArrowFunction,
  VarDeclarator,
  FunctionNode,
  DESCRIPTOR_TYPES,
)
from .config import TranspilerConfig
from .inferrer import Scope, TypeInferrer
from .registry import InterfaceRegistry
from .descriptors import (
  ArrayType,
  UnionType,
  Reference,
  ObjectShape,
  TypeDescriptor,
  FunctionSignature,
  is_unknown,
  make_union,
)

_log = logging.getLogger(__name__)

# Accessors and constructors never carry a return annotation
NO_RETURN_KINDS = {"constructor", "set"}


@dataclass
class AnnotationResult:
  """Result of annotating one program."""

  program: Program
  declarations: list[str]
  required_modules: list[str]


def is_complex(shape: ObjectShape) -> bool:
  """More than two properties, or a property that is itself an object or an array."""
  if len(shape.properties) > 2:
    return True
  return any(isinstance(t, (ObjectShape, ArrayType)) for _, t in shape.properties)


class AnnotationPass:
  """Walks a program and returns an annotated copy, sharing unchanged nodes."""

  def __init__(self, config: TranspilerConfig, registry: InterfaceRegistry, inferrer: TypeInferrer) -> None:
    self.config = config
    self.registry = registry
    self.inferrer = inferrer
    # Parameter types of the innermost enclosing function
    self.scope: Scope = {}
    self.required_modules: list[str] = []

  # === Attachment policy ===

  def _resolve(self, t: TypeDescriptor) -> TypeDescriptor:
    """Replace complex object shapes with interface references, innermost first."""
    match t:
      case ObjectShape(properties):
        resolved = ObjectShape(tuple((name, self._resolve(value)) for name, value in properties))
        if self.config.generate_interfaces and is_complex(t):
          return Reference(self.registry.intern(resolved))
        return resolved
      case ArrayType(element):
        return ArrayType(self._resolve(element))
      case UnionType(members):
        return make_union(self._resolve(m) for m in members)
      case FunctionSignature(params, return_type):
        return FunctionSignature(
          tuple((name, self._resolve(value)) for name, value in params),
          self._resolve(return_type),
        )
    return t

  def _attach(self, existing: TypeDescriptor | None, t: TypeDescriptor) -> TypeDescriptor | None:
    """Annotation for a site whose inferred type is t."""
    if existing is not None or not self.config.infer_types:
      return existing
    if is_unknown(t):
      return self.config.fallback if self.config.add_explicit_any else None
    return self._resolve(t)

  # === Tree walk ===

  def transform_program(self, program: Program) -> Program:
    new_body = tuple(self._transform(stmt) for stmt in program.body)
    if all(new is old for new, old in zip(new_body, program.body)):
      return program  # No changes
    return replace(program, body=new_body)

  def _transform_children(self, node):
    """Rebuild a node from its transformed children, or return it unchanged."""
    changes = {}
    for field in fields(node):
      value = getattr(node, field.name)
      if isinstance(value, tuple):
        new_value = tuple(self._transform(item) if is_dataclass(item) else item for item in value)
        if any(new is not old for new, old in zip(new_value, value)):
          changes[field.name] = new_value
      elif is_dataclass(value) and not isinstance(value, DESCRIPTOR_TYPES):
        new_value = self._transform(value)
        if new_value is not value:
          changes[field.name] = new_value
    if not changes:
      return node
    return replace(node, **changes)

  def _transform(self, node):
    match node:
      case VarDeclarator(_, init, type_ann) if init is not None:
        new_init = self._transform(init)
        new_ann = self._attach(type_ann, self.inferrer.infer(init, self.scope))
        if new_init is init and new_ann is type_ann:
          return node
        return replace(node, init=new_init, type_ann=new_ann)

      case ClassProperty(value=value, type_ann=type_ann) if value is not None:
        new_value = self._transform(value)
        new_ann = self._attach(type_ann, self.inferrer.infer(value, self.scope))
        new_key = self._transform(node.key) if node.computed else node.key
        if new_value is value and new_ann is type_ann and new_key is node.key:
          return node
        return replace(node, key=new_key, value=new_value, type_ann=new_ann)

      case FunctionDecl() | FunctionExpr() | ArrowFunction():
        return self._transform_function(node, "method")

      case MethodDef(key, value, kind):
        new_value = self._transform_function(value, kind)
        new_key = self._transform(key) if node.computed else key
        if new_value is value and new_key is key:
          return node
        return replace(node, key=new_key, value=new_value)

      case Property(key, FunctionExpr() as value, kind) if kind != "init":
        new_value = self._transform_function(value, kind)
        new_key = self._transform(key) if node.computed else key
        if new_value is value and new_key is key:
          return node
        return replace(node, key=new_key, value=new_value)

      case ObjectExpr(_, type_ann):
        new_node = self._transform_children(node)
        new_ann = type_ann
        if type_ann is None and self.config.infer_types:
          new_ann = self._resolve(self.inferrer.infer_object(node, self.scope))
        if new_ann is type_ann:
          return new_node
        return replace(new_node, type_ann=new_ann)

      case CallExpr(Identifier("require"), (StringLiteral(module), *_)):
        if module not in self.required_modules:
          self.required_modules.append(module)
        return self._transform_children(node)

    return self._transform_children(node)

  def _transform_function(self, node: FunctionNode, kind: str) -> FunctionNode:
    """Annotate parameters and the return type, then the body under the parameter scope."""
    scope = self.inferrer.infer_parameters(node)

    new_params = []
    for param in node.params:
      param_type = scope[param.name]
      new_param = self._transform_children(param)
      new_ann = self._attach(param.type_ann, param_type)
      if new_ann is not param.type_ann:
        new_param = replace(new_param, type_ann=new_ann)
      new_params.append(new_param)

    new_return = node.return_type
    if self._wants_return_type(node, kind):
      new_return = self._attach(node.return_type, self.inferrer.infer_body_return(node, scope))

    outer, self.scope = self.scope, scope
    try:
      new_body = self._transform(node.body)
    finally:
      self.scope = outer

    if new_body is node.body and new_return is node.return_type and all(new is old for new, old in zip(new_params, node.params)):
      return node
    return replace(node, params=tuple(new_params), body=new_body, return_type=new_return)

  def _wants_return_type(self, node: FunctionNode, kind: str) -> bool:
    # Async and generator bodies return a Promise or an iterator, not the returned value
    if kind in NO_RETURN_KINDS or node.is_async:
      return False
    return not getattr(node, "is_generator", False)


def annotate(
  program: Program,
  config: TranspilerConfig,
  registry: InterfaceRegistry | None = None,
  inferrer: TypeInferrer | None = None,
  emit: bool = True,
) -> AnnotationResult:
  """Annotate a program. With emit off the registry stays open and no declarations are returned."""
  registry = registry if registry is not None else InterfaceRegistry()
  annotation_pass = AnnotationPass(config, registry, inferrer or TypeInferrer())
  new_program = annotation_pass.transform_program(program)
  declarations = registry.declarations() if emit else []
  _log.debug("annotated program: %d interfaces, %d required modules", len(registry), len(annotation_pass.required_modules))
  return AnnotationResult(new_program, declarations, annotation_pass.required_modules)
