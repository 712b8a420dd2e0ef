"""
Argstack parsing engine: one ParsingContext per parse (and per nested verb parse).

Phases of ParsingContext.parse(tokens)
- scan
  • tokens live on a LIFO stack (a list whose top is the last item), so a handler
    can push back what it did not use: inline values, option-looking tokens met
    while collecting a vararg run.
  • each token is classified as delimiter ("--"), long option ("--name[=value]"),
    negative number ("-1"), short option or short cluster ("-x", "-xVALUE",
    "-abc"), verb, or positional.
- positionals
  • leftover tokens feed the positional descriptors in declaration order; any
    token still left afterwards is an error.
- cleanup
  • required groups and required named arguments are checked, each check
    reporting every missing item at once, then post-parse hooks run in order.

Signals
- failures raise ParseException subclasses and abort immediately (except the
  two deferred requirement checks, which run last).
- a trigger (help, version, ...) makes parse() return a ParserExit; every
  caller returns it unchanged, nested verb parses included. It is never raised.
"""
import difflib

from . import converters
from .arguments import Action, Trigger
from .faults import *
from .utils import *


class ParsingContext:
    """
    Session state of a single parse against one registry.

    Parameters
    - target: the object receiving values (written only through each
      descriptor's Store).
    - config: the ParserConfig describing the arguments; only read.

    State (owned by this context, discarded with it)
    - satisfied mutually exclusive groups
    - satisfied named arguments (by dest)
    """

    def __init__(self, target, config, /):
        self._target = target
        self._config = config
        self._groups = set()
        self._named = set()

    @property
    def target(self):
        return self._target

    @property
    def config(self):
        return self._config

    def parse(self, tokens, /):
        """
        Scan 'tokens' into the target.

        Returns None on success or a ParserExit when a trigger fired.
        Raises ParseException subclasses on failures; hook exceptions propagate as-is.
        """
        config = self._config
        stack = list(reversed(tokens))
        positionals = []

        while stack:
            token = stack.pop()

            if not token or not (token := token.strip()):
                continue

            # rest of the tokens are positional, verbatim
            if token == config.delimiter:
                positionals.extend(reversed(stack))
                stack.clear()
                break

            if token[0] == config.prefix:
                if len(token) == 1:
                    raise BadPrefixUsageError(
                        "cannot use the prefix %r as an argument unless forced into positional mode using %r" % (
                            token, config.delimiter
                        ),
                        token=token,
                        hint="place %r before it to pass it as a positional value" % config.delimiter,
                    )
                if token[1] == config.prefix:
                    name, separator, value = token[2:].partition(config.separator)
                    signal = self._resolve(name, stack, long=True, token=token, inline=value if separator else Unset)
                elif token[1].isdecimal():
                    # negative number, never an option
                    positionals.append(token)
                    continue
                else:
                    signal = self._parse_short(token, stack)

                if signal is not None:
                    return signal
                continue

            # only the first positional token is eligible to be a verb
            if not positionals and (verb := config.verbs.get(token)):
                if (signal := self._parse_verb(verb, stack)) is not None:
                    return signal
                break

            positionals.append(token)

        stack = list(reversed(positionals))
        for argument in config.positionals:
            self._apply(argument.display, argument, stack, delimited=False)

        if stack:
            leftover = list(reversed(stack))
            raise ExtraPositionalArgumentsError(
                "extra positional arguments found: %s" % " ".join(leftover),
                token=leftover[0],
                leftover=leftover,
                hint="remove the extra values or check how many positionals %s expects" % (config.name or "the command"),
            )

        self._cleanup()
        return None

    def _parse_short(self, token, stack):
        """
        Handle "-x", "-xVALUE" and "-abc".

        The flag character's own action decides how trailing text is read, before
        anything is pushed on the stack: a value-consuming argument takes it as its
        inline value; otherwise every character is a clustered zero-value flag.
        """
        flag, rest = token[1], token[2:]

        if not rest:
            return self._resolve(flag, stack, token=token)

        if getattr(self._config.short.get(flag), "consumes", False):
            return self._resolve(flag, stack, token=token, inline=rest)

        for flag in token[1:]:
            # clustered flags get no access to the stack
            if (signal := self._resolve(flag, None, token=token)) is not None:
                return signal
        return None

    def _parse_verb(self, verb, stack):
        """
        Run a nested parse of every remaining token and store its target.
        """
        target = verb.factory()
        remaining = list(reversed(stack))
        stack.clear()

        if (signal := ParsingContext(target, verb.config).parse(remaining)) is not None:
            return signal

        verb.store.set(self._target, target)
        return None

    def _resolve(self, name, stack, /, *, long=False, token, inline=Unset):
        """
        Look up a short or long name and apply it.

        - unknown names fail with close-match suggestions;
        - triggers fire and return a ParserExit;
        - mutually exclusive groups are claimed (a second claim fails);
        - stack is None inside a short cluster: value-consuming arguments fail;
        - an inline value is pushed back so the action consumes it first.
        """
        config = self._config
        table = config.long if long else config.short
        spelling = config.prefix * (2 if long else 1) + name

        try:
            argument = table[name]
        except KeyError:
            suggestions = [config.prefix * (2 if long else 1) + x for x in difflib.get_close_matches(name, table.keys(), 5)]
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "check the spelling, or place %r before values that start with %r" % (config.delimiter, config.prefix)
            raise UnknownArgumentError(
                "unknown argument name %r" % spelling,
                token=token,
                name=spelling,
                suggestions=suggestions,
                hint=hint,
            ) from None

        if isinstance(argument, Trigger):
            argument.fire(config)
            return ParserExit(argument, token=token, name=spelling)

        self._named.add(argument.dest)

        for group in sorted(argument.exclusive):
            if group in self._groups:
                raise MutuallyExclusiveViolationError(
                    "mutually exclusive group %r violated by %r" % (group, spelling),
                    token=token,
                    name=spelling,
                    group=group,
                    argument=argument,
                    hint="keep a single argument of group %r" % group,
                )
            self._groups.add(group)

        if stack is None and argument.consumes:
            raise GroupedArgumentRequiresValueError(
                "argument %r consumes values and cannot be grouped in %r" % (spelling, token),
                token=token,
                name=spelling,
                argument=argument,
                hint="pass %r on its own, followed by its value" % spelling,
            )

        if inline is not Unset:
            if not argument.consumes:
                raise FlagAssignmentError(
                    "argument %r cannot have an inline value" % spelling,
                    token=token,
                    name=spelling,
                    argument=argument,
                    hint="remove everything from %r (for example: %s)" % (config.separator, spelling),
                )
            stack.append(inline)

        self._apply(spelling, argument, stack)
        return None

    def _apply(self, name, argument, stack, /, *, delimited=True):
        """
        Run the argument's action against the target.

        'name' is the spelling used in messages; 'delimited' makes vararg runs stop
        at option-looking tokens (disabled for positionals, which are values already).
        """
        target = self._target
        store = argument.store

        match argument.action:
            case Action.STORE if argument.multiple:
                values = self._existing(argument)
                self._consume(name, argument, values, stack, delimited=delimited)
                store.set(target, argument.container(values))
            case Action.STORE:
                store.set(target, self._convert(name, argument, self._pop(name, argument, stack)))
            case Action.STORE_CONST:
                store.set(target, argument.const)
            case Action.STORE_TRUE:
                store.set(target, True)
            case Action.STORE_FALSE:
                store.set(target, False)
            case Action.APPEND:
                values = self._existing(argument)
                if argument.multiple:
                    self._consume(name, argument, values, stack, delimited=delimited)
                else:
                    values.append(self._convert(name, argument, self._pop(name, argument, stack)))
                store.set(target, argument.container(values))
            case Action.APPEND_CONST:
                values = self._existing(argument)
                values.append(argument.const)
                store.set(target, argument.container(values))
            case Action.COUNT:
                store.set(target, (store.get(target) or 0) + 1)

    def _consume(self, name, argument, values, stack, /, *, delimited):
        """
        Collect a run of values within the argument's arity bounds.
        """
        minimum, maximum = argument.nargs.bounds
        consumed = 0

        while stack and (maximum is None or consumed < maximum):
            token = stack.pop()

            # the next option starts here
            if delimited and self._delimits(token):
                stack.append(token)
                break

            values.append(self._convert(name, argument, token))
            consumed += 1

        if consumed < minimum:
            raise ArityViolationError(
                "argument %r requires %s %d value(s) but %d were provided" % (
                    name, "exactly" if minimum == maximum else "at least", minimum, consumed
                ),
                name=name,
                argument=argument,
                minimum=minimum,
                provided=consumed,
                hint="pass %s %d value(s) to %r" % ("exactly" if minimum == maximum else "at least", minimum, name),
            )

    def _delimits(self, token):
        return token.strip().startswith(self._config.prefix)

    def _pop(self, name, argument, stack):
        if not stack:
            raise MissingValueError(
                "argument %r requires a value but none was provided" % name,
                name=name,
                argument=argument,
                hint="add a value after %r" % name,
            )
        return stack.pop()

    def _existing(self, argument):
        return list(argument.store.get(self._target) or ())

    def _convert(self, name, argument, text):
        try:
            return converters.convert(text, argument.type, argument.converter)
        except Exception as exception:
            typename = getattr(argument.type, "__name__", repr(argument.type))
            raise ConversionError(
                "value %r of argument %r cannot be converted to the required type %s" % (text, name, typename),
                token=text,
                name=name,
                argument=argument,
                hint="pass a value of type %s to %r" % (typename, name),
            ) from exception

    def _cleanup(self):
        """
        Deferred checks (each lists every missing item), then post-parse hooks.
        """
        config = self._config

        if missing := sorted(config.required_groups - self._groups):
            raise MissingRequiredGroupError(
                "required mutually exclusive group(s) %s were not provided" % ", ".join(map(repr, missing)),
                missing=tuple(missing),
                hint="pass one argument of each listed group",
            )

        if missing := [argument.display for argument in config.required if argument.dest not in self._named]:
            raise MissingRequiredArgumentError(
                "required named argument(s) %s were not provided" % ", ".join(map(repr, missing)),
                missing=tuple(missing),
                hint="add the listed arguments",
            )

        for hook in config.hooks:
            hook(self._target)


__all__ = (
    "ParsingContext",
)
